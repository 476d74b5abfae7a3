from .. import db

__all__ = ['db']
