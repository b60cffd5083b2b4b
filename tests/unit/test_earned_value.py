"""
Unit tests for earned value metrics and KPI roll-up.
"""

import pytest

from programme_core.analysis.earned_value import (
    EVMCalculator,
    HealthStatus,
    RiskLevel,
    calculate_evm,
    calculate_kpis,
    calculate_portfolio_metrics,
    calculate_project_progress,
    evm_to_dataframe,
    generate_predictive_analysis,
    summarize_evm,
)
from programme_core.cpm.models import Project


@pytest.fixture
def project():
    return Project(id='P-100', name='Tower A')


class TestTaskMetrics:
    """Per-task formulas."""

    def test_worked_example(self, evm_example_task):
        """PV 1000, 50% complete, AC 600."""
        data = EVMCalculator().calculate_task(evm_example_task)
        assert data.planned_value == 1000.0
        assert data.earned_value == 500.0
        assert data.cost_variance == -100.0
        assert data.schedule_variance == -500.0
        assert data.cost_performance_index == pytest.approx(0.8333, abs=1e-3)
        assert data.schedule_performance_index == pytest.approx(0.5)
        assert data.estimate_at_completion == pytest.approx(1200.0, abs=0.5)
        assert data.variance_at_completion == pytest.approx(-200.0, abs=0.5)

    def test_no_actual_cost_gives_unit_cpi(self, make_task):
        """CPI defaults to 1 when nothing has been spent."""
        data = EVMCalculator().calculate_task(make_task('A', 0, 5, budgeted_cost=800.0))
        assert data.cost_performance_index == 1.0
        assert data.earned_value == 0.0
        assert data.schedule_performance_index == 0.0
        assert data.estimate_at_completion == 800.0

    def test_unbudgeted_task_gives_unit_indices(self, make_task):
        """Zero PV and zero AC leave both indices at 1."""
        data = EVMCalculator().calculate_task(make_task('A', 0, 5))
        assert data.cost_performance_index == 1.0
        assert data.schedule_performance_index == 1.0
        assert data.estimate_at_completion == 0.0
        assert data.variance_at_completion == 0.0

    def test_zero_cpi_treated_as_one_for_eac(self, make_task):
        """Spend with no progress does not divide by zero."""
        data = EVMCalculator().calculate_task(
            make_task('A', 0, 5, budgeted_cost=1000.0, actual_cost=300.0))
        assert data.cost_performance_index == 0.0
        assert data.estimate_at_completion == 1300.0

    def test_completed_on_budget(self, make_task):
        """A finished task at budget has unit indices and no variance."""
        data = EVMCalculator().calculate_task(
            make_task('A', 0, 5, budgeted_cost=400.0, actual_cost=400.0, percent_complete=100))
        assert data.cost_performance_index == 1.0
        assert data.schedule_performance_index == 1.0
        assert data.variance_at_completion == 0.0

    def test_calculate_evm_keeps_task_order(self, cascade_schedule):
        """One row per task, in input order."""
        assert [d.task_id for d in calculate_evm(cascade_schedule)] == ['A', 'B']


class TestSummary:
    """Portfolio totals."""

    def test_cumulative_indices(self, make_task):
        """Indices come from the totals, not averaged."""
        tasks = [
            make_task('A', 0, 5, budgeted_cost=1000.0, percent_complete=50, actual_cost=600.0),
            make_task('B', 0, 5, budgeted_cost=1000.0, percent_complete=100, actual_cost=900.0),
        ]
        summary = summarize_evm(tasks)
        assert summary.task_count == 2
        assert summary.planned_value == 2000.0
        assert summary.earned_value == 1500.0
        assert summary.actual_cost == 1500.0
        assert summary.cost_performance_index == pytest.approx(1.0)
        assert summary.schedule_performance_index == pytest.approx(0.75)
        assert summary.estimate_at_completion == pytest.approx(2000.0)

    def test_empty_summary(self):
        """Nothing to roll up."""
        summary = summarize_evm([])
        assert summary.task_count == 0
        assert summary.cost_performance_index == 1.0
        assert summary.schedule_performance_index == 1.0


class TestKPIs:
    """Project KPI roll-up and classification."""

    def test_kpis_for_example(self, project, evm_example_task):
        """Low indices make a high-risk, red project."""
        kpis = calculate_kpis(project, [evm_example_task])
        assert kpis.project_id == 'P-100'
        assert kpis.schedule_performance == pytest.approx(0.5)
        assert kpis.cost_performance == pytest.approx(0.8333, abs=1e-3)
        assert kpis.quality_score == pytest.approx(50.0)
        assert kpis.resource_utilization == pytest.approx(0.6)
        assert kpis.risk_level == RiskLevel.HIGH
        assert kpis.overall_health == HealthStatus.RED
        assert 'Tower A' in kpis.get_summary()

    def test_averages_over_tasks(self, project, make_task):
        """SPI and CPI are simple averages of the task indices."""
        tasks = [
            make_task('A', 0, 5, budgeted_cost=100.0, percent_complete=100, actual_cost=100.0),
            make_task('B', 0, 5, budgeted_cost=100.0, percent_complete=80, actual_cost=80.0),
        ]
        kpis = calculate_kpis(project, tasks)
        assert kpis.schedule_performance == pytest.approx(0.9)
        assert kpis.cost_performance == pytest.approx(1.0)
        assert kpis.risk_level == RiskLevel.MEDIUM
        assert kpis.overall_health == HealthStatus.YELLOW

    def test_quality_score_capped(self, project, make_task):
        """Quality score never exceeds 100."""
        tasks = [make_task('A', 0, 5, budgeted_cost=0.0, percent_complete=100)]
        assert calculate_kpis(project, tasks).quality_score == 100.0

    def test_empty_task_set(self, project):
        """Defaults for an empty project."""
        kpis = calculate_kpis(project, [])
        assert kpis.schedule_performance == 1.0
        assert kpis.cost_performance == 1.0
        assert kpis.resource_utilization == 0.0
        assert kpis.risk_level == RiskLevel.LOW
        assert kpis.overall_health == HealthStatus.GREEN

    @pytest.mark.parametrize("cpi,spi,risk,health", [
        (1.0, 1.0, RiskLevel.LOW, HealthStatus.GREEN),
        (0.95, 1.2, RiskLevel.LOW, HealthStatus.GREEN),
        (0.94, 1.0, RiskLevel.MEDIUM, HealthStatus.YELLOW),
        (1.0, 0.90, RiskLevel.MEDIUM, HealthStatus.YELLOW),
        (0.89, 1.0, RiskLevel.HIGH, HealthStatus.RED),
        (1.1, 0.5, RiskLevel.HIGH, HealthStatus.RED),
    ])
    def test_thresholds(self, cpi, spi, risk, health):
        """The worse of CPI and SPI decides the band."""
        assert EVMCalculator.classify_risk(cpi, spi) == risk
        assert EVMCalculator.classify_health(cpi, spi) == health


class TestProjectProgress:
    """Mean percent complete."""

    def test_milestones_excluded(self, make_task):
        """Milestones do not count towards progress."""
        tasks = [
            make_task('A', 0, 5, percent_complete=50),
            make_task('B', 0, 5, percent_complete=25),
            make_task('M', 5, task_type='milestone', percent_complete=100),
        ]
        assert calculate_project_progress(tasks) == 38

    def test_no_normal_tasks(self, make_task):
        """Only milestones means zero progress."""
        assert calculate_project_progress([make_task('M', 0, task_type='milestone')]) == 0
        assert calculate_project_progress([]) == 0


class TestDataFrame:
    """Tabular output."""

    def test_columns_and_rows(self, cascade_schedule):
        """One row per task with every metric as a column."""
        df = evm_to_dataframe(calculate_evm(cascade_schedule))
        assert len(df) == 2
        assert list(df.columns)[:3] == ['task_id', 'task_name', 'planned_value']
        assert 'estimate_at_completion' in df.columns

    def test_empty(self):
        """No rows still gives the expected columns."""
        df = evm_to_dataframe([])
        assert df.empty
        assert 'cost_performance_index' in df.columns


class TestPredictiveAnalysis:
    """Rule-based cost and schedule forecast."""

    def test_forecast_for_example(self, project, evm_example_task, day):
        """CPI 0.83 and SPI 0.5 stretch cost to 1200 and 10 days to 20."""
        forecast = generate_predictive_analysis(project, [evm_example_task])
        assert forecast.project_id == 'P-100'
        assert forecast.cost_forecast == pytest.approx(1200.0)
        assert forecast.schedule_forecast == pytest.approx(20.0)
        assert forecast.completion_date == day(20)
        assert forecast.confidence == 100.0
        assert forecast.risk_factors == ['Cost overrun', 'Schedule delay']
        assert forecast.recommendations == [
            'Review cost control measures and implement corrective actions',
            'Analyze critical path and consider schedule compression techniques',
            'Implement risk mitigation strategies for identified risk factors',
        ]

    def test_on_track_project_has_no_risks(self, project, make_task, day):
        """Planned span is kept when both indices are 1."""
        tasks = [
            make_task('A', 0, 5, budgeted_cost=100.0, percent_complete=100, actual_cost=100.0),
            make_task('B', 5, 3, preds=['A']),
        ]
        forecast = generate_predictive_analysis(project, tasks)
        assert forecast.cost_forecast == pytest.approx(100.0)
        assert forecast.schedule_forecast == pytest.approx(8.0)
        assert forecast.completion_date == day(8)
        assert forecast.risk_factors == []
        assert forecast.recommendations == []

    def test_overspend_risk_factors(self, project, make_task):
        """Spend 20% over plan flags allocation and a large task variance."""
        tasks = [make_task('A', 0, 5, budgeted_cost=10000.0, percent_complete=100,
                           actual_cost=12000.0)]
        forecast = generate_predictive_analysis(project, tasks)
        assert forecast.risk_factors == [
            'Cost overrun', 'Resource over-allocation', 'Significant cost variance']
        assert forecast.recommendations == [
            'Review cost control measures and implement corrective actions',
            'Implement risk mitigation strategies for identified risk factors',
        ]

    def test_confidence_drops_with_cpi_spread(self, project, make_task):
        """Task CPIs of 1.0 and 0.5 have a population spread of 0.25."""
        tasks = [
            make_task('A', 0, 5, budgeted_cost=100.0, percent_complete=100, actual_cost=100.0),
            make_task('B', 0, 5, budgeted_cost=100.0, percent_complete=50, actual_cost=100.0),
        ]
        forecast = generate_predictive_analysis(project, tasks)
        assert forecast.confidence == pytest.approx(75.0)

    def test_confidence_floor(self, project, make_task):
        """Wide CPI spread never takes confidence below 50."""
        tasks = [
            make_task('A', 0, 5, budgeted_cost=100.0, percent_complete=100, actual_cost=50.0),
            make_task('B', 0, 5, budgeted_cost=100.0, percent_complete=10, actual_cost=100.0),
        ]
        forecast = generate_predictive_analysis(project, tasks)
        assert forecast.confidence == 50.0

    def test_zero_spi_does_not_divide_by_zero(self, project, make_task, day):
        """No progress on a budgeted task keeps the planned span."""
        tasks = [make_task('A', 0, 5, budgeted_cost=1000.0)]
        forecast = generate_predictive_analysis(project, tasks)
        assert forecast.schedule_forecast == pytest.approx(5.0)
        assert forecast.completion_date == day(5)
        assert 'Schedule delay' in forecast.risk_factors

    def test_empty_task_set(self, day):
        """No tasks forecasts nothing from the project start."""
        forecast = EVMCalculator().generate_predictive_analysis(
            Project(id='P-1', start=day(3)), [])
        assert forecast.cost_forecast == 0.0
        assert forecast.schedule_forecast == 0.0
        assert forecast.completion_date == day(3)
        assert forecast.confidence == 100.0
        assert forecast.risk_factors == []

    def test_empty_task_set_without_start(self, project):
        """No tasks and no project start leaves the completion date open."""
        assert generate_predictive_analysis(project, []).completion_date is None


class TestPortfolioMetrics:
    """Roll-up across projects."""

    def test_three_projects(self, evm_example_task, make_task):
        """One at risk and active, one completed, one not started."""
        portfolio = [
            (Project(id='P-1'), [evm_example_task]),
            (Project(id='P-2'), [make_task('A', 0, 5, budgeted_cost=100.0,
                                           percent_complete=100, actual_cost=100.0)]),
            (Project(id='P-3'), [make_task('A', 0, 5)]),
        ]
        metrics = calculate_portfolio_metrics(portfolio)
        assert metrics.total_projects == 3
        assert metrics.active_projects == 1
        assert metrics.completed_projects == 1
        assert metrics.total_budget == pytest.approx(1100.0)
        assert metrics.total_spent == pytest.approx(700.0)
        assert metrics.average_schedule_performance == pytest.approx(2.5 / 3)
        assert metrics.average_cost_performance == pytest.approx((1000 / 1200 + 2) / 3)
        assert metrics.risk_distribution == {'low': 2, 'medium': 0, 'high': 1}

    def test_milestone_only_project_not_completed(self, make_task):
        """A finished milestone alone does not complete a project."""
        portfolio = [(Project(id='P-1'),
                      [make_task('M', 0, task_type='milestone', percent_complete=100)])]
        metrics = EVMCalculator().calculate_portfolio_metrics(portfolio)
        assert metrics.completed_projects == 0
        assert metrics.active_projects == 1

    def test_empty_portfolio(self):
        """Averages are zero when there are no projects."""
        metrics = calculate_portfolio_metrics([])
        assert metrics.total_projects == 0
        assert metrics.average_schedule_performance == 0.0
        assert metrics.average_cost_performance == 0.0
        assert metrics.risk_distribution == {'low': 0, 'medium': 0, 'high': 0}
