from .alpha_vantage_client import AlphaVantageClient, AlphaVantageError
from .gateway import OPERATIONS, ProviderGateway
from .reports import LIST_REPORTS, ReportSpec

__all__ = [
    'AlphaVantageClient',
    'AlphaVantageError',
    'LIST_REPORTS',
    'OPERATIONS',
    'ProviderGateway',
    'ReportSpec',
]
