"""Launch strategy filters, readiness gate and experimenter."""

from .experimenter import StrategyEvaluation, StrategyExperimenter
from .gate import GateDecision, StrategyGate
from .launch_strategy import AtLeast, AtMost, Constraint, FilterResult, NoLimit, StrategyFilters

__all__ = [
    'AtLeast',
    'AtMost',
    'Constraint',
    'FilterResult',
    'GateDecision',
    'NoLimit',
    'StrategyEvaluation',
    'StrategyExperimenter',
    'StrategyFilters',
    'StrategyGate',
]
