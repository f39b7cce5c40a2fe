"""Business-logic layer, one service per entity."""
from .files import FileService, IncomingFile, UploadOptions
from .orders import OrderService
from .users import UserService

__all__ = ["FileService", "IncomingFile", "OrderService", "UploadOptions", "UserService"]
