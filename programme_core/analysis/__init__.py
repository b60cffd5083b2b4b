"""
Analysis modules: earned value, critical path risk and what-if scenarios.
"""

from .earned_value import (
    EVMCalculator,
    EVMData,
    EVMSummary,
    KPIMetrics,
    PortfolioMetrics,
    PredictiveAnalysis,
    RiskLevel,
    HealthStatus,
    calculate_evm,
    calculate_kpis,
    summarize_evm,
    calculate_project_progress,
    evm_to_dataframe,
    generate_predictive_analysis,
    calculate_portfolio_metrics,
)
from .critical_path import CriticalPathResult, analyze_critical_path, identify_risk_tasks
from .task_impact import TaskImpactResult, analyze_task_impact, analyze_task_sensitivity

__all__ = [
    'EVMCalculator',
    'EVMData',
    'EVMSummary',
    'KPIMetrics',
    'PortfolioMetrics',
    'PredictiveAnalysis',
    'RiskLevel',
    'HealthStatus',
    'calculate_evm',
    'calculate_kpis',
    'summarize_evm',
    'calculate_project_progress',
    'evm_to_dataframe',
    'generate_predictive_analysis',
    'calculate_portfolio_metrics',
    'CriticalPathResult',
    'analyze_critical_path',
    'identify_risk_tasks',
    'TaskImpactResult',
    'analyze_task_impact',
    'analyze_task_sensitivity',
]
