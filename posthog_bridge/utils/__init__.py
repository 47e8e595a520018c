from .environ import Environ, environ
from .logging import setup_logging
from .pydantic_utils import BaseModelExtraForbid, CamelModel

__all__ = [
    "BaseModelExtraForbid",
    "CamelModel",
    "Environ",
    "environ",
    "setup_logging",
]
