from .dispatcher import METHODS, Dispatcher, MethodSpec
from .server import decode_stream, serve_stream

__all__ = [
    'Dispatcher',
    'METHODS',
    'MethodSpec',
    'decode_stream',
    'serve_stream',
]
