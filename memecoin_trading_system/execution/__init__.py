"""Order execution layer."""

from .launch_executor import LaunchExecutor, MomentumLookup
from .order_manager import OrderRequest, OrderResult, PaperOrderManager

__all__ = ['LaunchExecutor', 'MomentumLookup', 'OrderRequest', 'OrderResult', 'PaperOrderManager']
