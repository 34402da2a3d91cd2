from setuptools import setup

setup(
    name='visualizeit',
    version='0',
    packages=['visualizeit', 'visualizeit.changes', 'visualizeit.core'],
    python_requires='>=3.8',
    extras_require={
        'test': ['pytest']
    },
    url='',
    license='',
    author='visualize-it team',
    author_email='',
    description='Object-persistence kernel for the visualize-it diagram editor: portable documents, '
                'pseudo-classes, cloning and undo/redo.'
)
