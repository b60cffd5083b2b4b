"""
Earned Value Management.

Per-task EVM metrics, a project KPI roll-up, rule-based forecasts and a
portfolio roll-up across projects, computed from task cost, progress and
dates only. Nothing here looks at the dependency graph.

Per task:
    PV  = budgeted_cost
    EV  = percent_complete / 100 * PV
    CV  = EV - AC
    SV  = EV - PV
    CPI = EV / AC            (1 when AC = 0)
    SPI = EV / PV            (1 when PV = 0)
    EAC = AC + (PV - EV) / CPI   (CPI of 0 treated as 1)
    VAC = PV - EAC
"""

import math
import statistics
from dataclasses import asdict, dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import Iterable, Optional

import pandas as pd

from programme_core.cpm.models import Project, Task, TaskCollection, as_schedule

HIGH_RISK_THRESHOLD = 0.90
MEDIUM_RISK_THRESHOLD = 0.95

# Forecast risk factor thresholds
OVER_ALLOCATION_THRESHOLD = 1.1
SIGNIFICANT_COST_VARIANCE = -1000.0
MIN_CONFIDENCE = 50.0


class RiskLevel(str, Enum):
    LOW = 'low'
    MEDIUM = 'medium'
    HIGH = 'high'


class HealthStatus(str, Enum):
    GREEN = 'green'
    YELLOW = 'yellow'
    RED = 'red'


@dataclass
class EVMData:
    """Earned value metrics for one task."""

    task_id: str
    task_name: str
    planned_value: float
    earned_value: float
    actual_cost: float
    cost_variance: float
    schedule_variance: float
    cost_performance_index: float
    schedule_performance_index: float
    estimate_at_completion: float
    variance_at_completion: float


@dataclass
class KPIMetrics:
    """Project-level KPI roll-up."""

    project_id: str
    project_name: str
    schedule_performance: float      # average SPI
    cost_performance: float          # average CPI
    quality_score: float
    resource_utilization: float      # total AC / total PV
    risk_level: RiskLevel
    overall_health: HealthStatus

    def get_summary(self) -> str:
        return (f"{self.project_name or self.project_id}: SPI {self.schedule_performance:.2f}, "
                f"CPI {self.cost_performance:.2f}, risk {self.risk_level.value}, "
                f"health {self.overall_health.value}")


@dataclass
class EVMSummary:
    """Portfolio totals with cumulative indices."""

    task_count: int
    planned_value: float
    earned_value: float
    actual_cost: float
    cost_variance: float
    schedule_variance: float
    cost_performance_index: float
    schedule_performance_index: float
    estimate_at_completion: float
    variance_at_completion: float


@dataclass
class PredictiveAnalysis:
    """Rule-based cost and schedule forecast for one project."""

    project_id: str
    cost_forecast: float             # total PV / average CPI
    schedule_forecast: float         # planned duration / average SPI, in days
    completion_date: Optional[date]
    confidence: float                # 50-100, lower when task CPIs are spread out
    risk_factors: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)


@dataclass
class PortfolioMetrics:
    """Roll-up of KPIs across several projects."""

    total_projects: int
    active_projects: int
    completed_projects: int
    total_budget: float
    total_spent: float
    average_schedule_performance: float
    average_cost_performance: float
    risk_distribution: dict[str, int]


def _performance_index(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator > 0 else 1.0


def _estimate_at_completion(planned: float, earned: float, actual: float, cpi: float) -> float:
    return actual + (planned - earned) / (cpi if cpi != 0 else 1.0)


class EVMCalculator:
    """Computes EVM metrics and KPI classifications for a task set."""

    def calculate_task(self, task: Task) -> EVMData:
        planned = float(task.budgeted_cost)
        earned = task.percent_complete / 100 * planned
        actual = float(task.actual_cost)

        cpi = _performance_index(earned, actual)
        spi = _performance_index(earned, planned)
        eac = _estimate_at_completion(planned, earned, actual, cpi)

        return EVMData(
            task_id=task.id,
            task_name=task.name,
            planned_value=planned,
            earned_value=earned,
            actual_cost=actual,
            cost_variance=earned - actual,
            schedule_variance=earned - planned,
            cost_performance_index=cpi,
            schedule_performance_index=spi,
            estimate_at_completion=eac,
            variance_at_completion=planned - eac,
        )

    def calculate(self, tasks: TaskCollection) -> list[EVMData]:
        return [self.calculate_task(task) for task in as_schedule(tasks).tasks]

    def summarize(self, tasks: TaskCollection) -> EVMSummary:
        data = self.calculate(tasks)
        planned = sum(d.planned_value for d in data)
        earned = sum(d.earned_value for d in data)
        actual = sum(d.actual_cost for d in data)

        cpi = _performance_index(earned, actual)
        eac = _estimate_at_completion(planned, earned, actual, cpi)
        return EVMSummary(
            task_count=len(data),
            planned_value=planned,
            earned_value=earned,
            actual_cost=actual,
            cost_variance=earned - actual,
            schedule_variance=earned - planned,
            cost_performance_index=cpi,
            schedule_performance_index=_performance_index(earned, planned),
            estimate_at_completion=eac,
            variance_at_completion=planned - eac,
        )

    @staticmethod
    def classify_risk(cpi: float, spi: float) -> RiskLevel:
        worst = min(cpi, spi)
        if worst < HIGH_RISK_THRESHOLD:
            return RiskLevel.HIGH
        if worst < MEDIUM_RISK_THRESHOLD:
            return RiskLevel.MEDIUM
        return RiskLevel.LOW

    @staticmethod
    def classify_health(cpi: float, spi: float) -> HealthStatus:
        worst = min(cpi, spi)
        if worst < HIGH_RISK_THRESHOLD:
            return HealthStatus.RED
        if worst < MEDIUM_RISK_THRESHOLD:
            return HealthStatus.YELLOW
        return HealthStatus.GREEN

    def calculate_kpis(self, project: Project, tasks: TaskCollection) -> KPIMetrics:
        """
        Roll task metrics up to project KPIs.

        Averages default to 1.0 for an empty task set; utilization is 0.0
        when there is no planned value.
        """
        data = self.calculate(tasks)
        if data:
            avg_spi = sum(d.schedule_performance_index for d in data) / len(data)
            avg_cpi = sum(d.cost_performance_index for d in data) / len(data)
        else:
            avg_spi = avg_cpi = 1.0

        total_planned = sum(d.planned_value for d in data)
        total_actual = sum(d.actual_cost for d in data)
        utilization = total_actual / total_planned if total_planned > 0 else 0.0

        return KPIMetrics(
            project_id=project.id,
            project_name=project.name,
            schedule_performance=avg_spi,
            cost_performance=avg_cpi,
            quality_score=min(100.0, avg_spi * 100),
            resource_utilization=utilization,
            risk_level=self.classify_risk(avg_cpi, avg_spi),
            overall_health=self.classify_health(avg_cpi, avg_spi),
        )

    def generate_predictive_analysis(self, project: Project,
                                     tasks: TaskCollection) -> PredictiveAnalysis:
        """
        Forecast final cost and duration from current performance.

        Cost forecast is total planned value over average CPI and schedule
        forecast is the planned span (earliest start to latest end) over
        average SPI. As in EAC, an index of 0 is treated as 1 for the
        division. Confidence is 100 minus the population standard deviation
        of task CPIs (as a percentage), floored at 50.
        """
        schedule = as_schedule(tasks)
        data = self.calculate(schedule)
        kpis = self.calculate_kpis(project, schedule)

        if schedule.tasks:
            start = min(task.start for task in schedule.tasks)
            duration = (max(task.end for task in schedule.tasks) - start).days
        else:
            start, duration = project.start, 0

        total_planned = sum(d.planned_value for d in data)
        cost_forecast = total_planned / (kpis.cost_performance or 1.0)
        schedule_forecast = duration / (kpis.schedule_performance or 1.0)
        completion_date = None
        if start is not None:
            completion_date = start + timedelta(days=math.ceil(schedule_forecast))

        spread = statistics.pstdev(d.cost_performance_index for d in data) if data else 0.0
        confidence = max(MIN_CONFIDENCE, 100.0 - spread * 100)

        risk_factors = []
        if kpis.cost_performance < HIGH_RISK_THRESHOLD:
            risk_factors.append('Cost overrun')
        if kpis.schedule_performance < HIGH_RISK_THRESHOLD:
            risk_factors.append('Schedule delay')
        if kpis.resource_utilization > OVER_ALLOCATION_THRESHOLD:
            risk_factors.append('Resource over-allocation')
        if any(d.cost_variance < SIGNIFICANT_COST_VARIANCE for d in data):
            risk_factors.append('Significant cost variance')

        recommendations = []
        if kpis.cost_performance < MEDIUM_RISK_THRESHOLD:
            recommendations.append(
                'Review cost control measures and implement corrective actions')
        if kpis.schedule_performance < MEDIUM_RISK_THRESHOLD:
            recommendations.append(
                'Analyze critical path and consider schedule compression techniques')
        if risk_factors:
            recommendations.append(
                'Implement risk mitigation strategies for identified risk factors')

        return PredictiveAnalysis(
            project_id=project.id,
            cost_forecast=cost_forecast,
            schedule_forecast=schedule_forecast,
            completion_date=completion_date,
            confidence=confidence,
            risk_factors=risk_factors,
            recommendations=recommendations,
        )

    def calculate_portfolio_metrics(
        self, projects: Iterable[tuple[Project, TaskCollection]]
    ) -> PortfolioMetrics:
        """
        Roll several projects up into portfolio totals.

        Budget is total planned value and spend is total actual cost. A
        project is completed when every normal task is at 100%, and active
        when it is not completed but some task has progress. Averages are
        0.0 for an empty portfolio.
        """
        total_budget = total_spent = 0.0
        spi_values, cpi_values = [], []
        active = completed = 0
        risk_distribution = {level.value: 0 for level in RiskLevel}

        for project, tasks in projects:
            schedule = as_schedule(tasks)
            data = self.calculate(schedule)
            kpis = self.calculate_kpis(project, schedule)

            total_budget += sum(d.planned_value for d in data)
            total_spent += sum(d.actual_cost for d in data)
            spi_values.append(kpis.schedule_performance)
            cpi_values.append(kpis.cost_performance)
            risk_distribution[kpis.risk_level.value] += 1

            normal = [task for task in schedule.tasks if not task.is_milestone]
            if normal and all(task.percent_complete == 100 for task in normal):
                completed += 1
            elif any(task.percent_complete > 0 for task in schedule.tasks):
                active += 1

        count = len(spi_values)
        return PortfolioMetrics(
            total_projects=count,
            active_projects=active,
            completed_projects=completed,
            total_budget=total_budget,
            total_spent=total_spent,
            average_schedule_performance=sum(spi_values) / count if count else 0.0,
            average_cost_performance=sum(cpi_values) / count if count else 0.0,
            risk_distribution=risk_distribution,
        )


def calculate_evm(tasks: TaskCollection) -> list[EVMData]:
    """Per-task EVM metrics, in task order."""
    return EVMCalculator().calculate(tasks)


def calculate_kpis(project: Project, tasks: TaskCollection) -> KPIMetrics:
    """Project KPI roll-up with risk and health classification."""
    return EVMCalculator().calculate_kpis(project, tasks)


def summarize_evm(tasks: TaskCollection) -> EVMSummary:
    """Portfolio totals with cumulative CPI/SPI/EAC/VAC."""
    return EVMCalculator().summarize(tasks)


def calculate_project_progress(tasks: TaskCollection) -> int:
    """Mean percent complete over normal (non-milestone) tasks, rounded half up."""
    normal = [task for task in as_schedule(tasks).tasks if not task.is_milestone]
    if not normal:
        return 0
    mean = sum(task.percent_complete for task in normal) / len(normal)
    return int(math.floor(mean + 0.5))


def evm_to_dataframe(data: list[EVMData]) -> pd.DataFrame:
    """Tabulate EVM rows for reporting and CSV output."""
    columns = list(EVMData.__dataclass_fields__)
    return pd.DataFrame([asdict(d) for d in data], columns=columns)


def generate_predictive_analysis(project: Project, tasks: TaskCollection) -> PredictiveAnalysis:
    """Cost and schedule forecast with risk factors and recommendations."""
    return EVMCalculator().generate_predictive_analysis(project, tasks)


def calculate_portfolio_metrics(
    projects: Iterable[tuple[Project, TaskCollection]]
) -> PortfolioMetrics:
    """Portfolio totals, average indices and risk distribution across projects."""
    return EVMCalculator().calculate_portfolio_metrics(projects)
