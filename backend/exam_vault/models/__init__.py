from .user import User
from .paper import Paper

__all__ = ["User", "Paper"]
