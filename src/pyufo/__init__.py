"""pyufo - Async Python client for server-driven instruction replies over HTTP polling."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyufo")
except PackageNotFoundError:
    __version__ = "0+local"
from pyufo._transport import HttpReply, HttpTransport, Transport, UploadProgress
from pyufo.callbacks import CallbackBinding, CallbackRegistry
from pyufo.client import UfoClient
from pyufo.config import UfoConfig
from pyufo.connection import Connection, ConnectionRegistry, ConnectionState
from pyufo.dom import Document, Element, MemoryDocument, MemoryElement
from pyufo.exceptions import (
    UfoConfigError,
    UfoError,
    UfoFormError,
    UfoMissingTargetError,
    UfoParseError,
    UfoTransportError,
    UfoUnknownCallbackError,
)
from pyufo.form import FileField, MultipartForm
from pyufo.models import Instruction, InstructionType
from pyufo.reply import DecodedReply, decode_reply
from pyufo.state import DataStore

__all__ = [
    "__version__",
    "CallbackBinding",
    "CallbackRegistry",
    "Connection",
    "ConnectionRegistry",
    "ConnectionState",
    "DataStore",
    "DecodedReply",
    "Document",
    "Element",
    "FileField",
    "HttpReply",
    "HttpTransport",
    "Instruction",
    "InstructionType",
    "MemoryDocument",
    "MemoryElement",
    "MultipartForm",
    "Transport",
    "UfoClient",
    "UfoConfig",
    "UfoConfigError",
    "UfoError",
    "UfoFormError",
    "UfoMissingTargetError",
    "UfoParseError",
    "UfoTransportError",
    "UfoUnknownCallbackError",
    "UploadProgress",
    "decode_reply",
]
