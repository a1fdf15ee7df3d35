"""
xtags: Extended-attribute file tagging

Keeps a set of string tags on files and directories, stored as one
comma-separated value in the ``user.tags`` extended attribute.
"""

__version__ = "0.1.0"
__license__ = "MIT"
