"""Display modes an entity can be presented in."""

__all__ = ['DispMode']

import enum


class DispMode(enum.Enum):
    VIEW = 'view'
    EDIT = 'edit'
    ANIMATE = 'animate'
