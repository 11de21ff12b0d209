import pandas as pd
import pytest

from report_generator import MigrationReportGenerator


@pytest.fixture
def report_generator():
    return MigrationReportGenerator()


@pytest.fixture
def result(engine, source, workload, target, selection, storage_config, operational):
    return engine.recompute(source, workload, target, selection, storage_config, operational)


def test_excel_report(report_generator, engine, source, result):
    buffer = report_generator.generate_excel_report(source, result, engine.compare_reference_set())
    sheets = pd.read_excel(buffer, sheet_name=None, engine='openpyxl')

    assert {"Summary", "Cost Breakdown", "Comparison"} <= set(sheets)
    assert "Change History" not in sheets

    breakdown = sheets["Cost Breakdown"]
    assert breakdown["Component"].iloc[-1] == "Total"
    assert breakdown["Monthly Cost"].iloc[-1] == pytest.approx(result.total_monthly_cost)
    assert len(sheets["Comparison"]) == 4


def test_batch_report(report_generator, engine):
    rows = [
        {'workload_name': 'orders', 'instance_class': 'db.r5.xlarge', 'instance_count': 2,
         'storage_gb': 500, 'write_ops_per_sec': 800},
        {'workload_name': 'broken', 'instance_class': 'db.r5.xlarge', 'instance_count': 0,
         'storage_gb': 500, 'write_ops_per_sec': 800},
    ]
    buffer = report_generator.generate_batch_excel_report(engine.size_batch(rows))
    summary = pd.read_excel(buffer, sheet_name="Batch Summary", engine='openpyxl')

    assert list(summary["Workload"]) == ["orders", "broken"]
    assert summary.loc[0, "SQL Nodes"] == 3


def test_cost_chart_is_png(report_generator, source, result):
    chart = report_generator.generate_cost_chart(source, result)
    assert chart.getvalue()[:8] == b"\x89PNG\r\n\x1a\n"
