from .client import Client, ClientStatus
from .user import User
