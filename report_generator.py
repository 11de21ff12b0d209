from io import BytesIO
import logging

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from utils import format_payback

logger = logging.getLogger(__name__)


class MigrationReportGenerator:
    """
    Builds downloadable reports from engine results
    """

    def __init__(self):
        self.colors = {
            'source': '#FF9800',
            'target': '#2196F3',
            'compute': '#1976D2',
            'storage': '#4CAF50',
            'operations': '#7B1FA2',
            'savings': '#2E7D32',
            'loss': '#C62828'
        }

    def _summary_rows(self, source, result):
        summary = result.cost_summary
        target = result.target
        return [
            ["SOURCE DATABASE", ""],
            ["Instance Class", source.instance_class],
            ["Instance Count", source.instance_count],
            ["Read Replicas", source.read_replica_count],
            ["Multi-AZ", "Yes" if source.multi_az else "No"],
            ["Storage (GB)", source.storage_gb],
            ["Monthly Cost", source.monthly_cost],
            ["", ""],
            ["TARGET CLUSTER", ""],
            ["SQL Nodes", f"{target.sql_nodes} x {result.selection.sql_instance_class}"],
            ["Storage Nodes", f"{target.storage_nodes} x {result.selection.storage_instance_class}"],
            ["Placement Nodes", f"{target.placement_nodes} x {result.selection.placement_instance_class}"],
            ["Analytics Nodes", f"{target.analytics_nodes} x {result.selection.analytics_instance_class}"
             if target.use_analytics_tier else "Not used"],
            ["Kubernetes Workers", target.worker_nodes],
            ["Replication Factor", target.replication_factor],
            ["", ""],
            ["COST COMPARISON", ""],
            ["Monthly Cost", summary.total_monthly_cost],
            ["Monthly Savings", summary.savings_amount],
            ["Savings (%)", round(summary.savings_percent, 2)],
            ["Annual Savings", summary.annual_savings],
            ["One-time Migration Cost", summary.one_time_cost],
            ["Payback Period", format_payback(summary.payback_months)],
        ]

    def generate_excel_report(self, source, result, comparison_rows=None):
        """Generate Excel report with summary, breakdown, history and comparison sheets"""
        buffer = BytesIO()

        with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
            pd.DataFrame(self._summary_rows(source, result), columns=['Parameter', 'Value']).to_excel(
                writer, sheet_name="Summary", index=False
            )

            breakdown = pd.DataFrame(
                [{"Component": line.label, "Monthly Cost": line.monthly_value} for line in result.breakdown]
            )
            breakdown.loc[len(breakdown)] = ["Total", result.total_monthly_cost]
            breakdown.to_excel(writer, sheet_name="Cost Breakdown", index=False)

            if result.history:
                history_data = [{
                    "#": entry.sequence_id,
                    "From": entry.from_instance_class,
                    "To": entry.to_instance_class,
                    "vCPU": entry.vcpu_change,
                    "Memory": entry.memory_change,
                    "SQL Nodes": entry.sql_nodes_change,
                    "Storage Nodes": entry.storage_nodes_change,
                    "SQL Instance": entry.instance_class_change,
                    "Instance Cost": entry.monthly_cost,
                } for entry in result.history]
                pd.DataFrame(history_data).to_excel(writer, sheet_name="Change History", index=False)

            if comparison_rows:
                self.comparison_dataframe(comparison_rows).to_excel(writer, sheet_name="Comparison", index=False)

            if result.warnings:
                pd.DataFrame({"Warning": result.warnings}).to_excel(writer, sheet_name="Warnings", index=False)

        buffer.seek(0)
        return buffer

    def generate_batch_excel_report(self, batch_results):
        """One summary row per bulk workload, failures included"""
        rows = []
        for name, data in batch_results.items():
            if "error" in data:
                rows.append({"Workload": name, "Error": data["error"]})
                continue
            source, result = data["source"], data["result"]
            rows.append({
                "Workload": name,
                "Source Instance": f"{source.instance_class} x{source.instance_count}",
                "Source Cost": source.monthly_cost,
                "SQL Nodes": result.target.sql_nodes,
                "Storage Nodes": result.target.storage_nodes,
                "Placement Nodes": result.target.placement_nodes,
                "Analytics Nodes": result.target.analytics_nodes,
                "Cluster Cost": result.total_monthly_cost,
                "Savings": result.savings_amount,
                "Savings (%)": round(result.savings_percent, 2),
                "Payback": format_payback(result.payback_months),
                "Error": "",
            })

        buffer = BytesIO()
        with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
            pd.DataFrame(rows).to_excel(writer, sheet_name="Batch Summary", index=False)
        buffer.seek(0)
        return buffer

    @staticmethod
    def comparison_dataframe(comparison_rows):
        return pd.DataFrame([{
            "Size": row.name,
            "Source Instance": row.source.instance_class,
            "vCPU": row.vcpu,
            "Memory (GB)": row.memory_gb,
            "Source Cost": row.source.monthly_cost,
            "SQL Nodes": row.target.sql_nodes,
            "SQL Instance": row.selection.sql_instance_class,
            "Cluster Cost": row.monthly_cost,
            "Savings": row.savings,
            "Savings (%)": round(row.savings_percent, 2),
        } for row in comparison_rows])

    def generate_cost_chart(self, source, result):
        """Breakdown bars next to a source vs. target comparison, as PNG"""
        try:
            plt.style.use('default')
            fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(12, 6))

            labels = [line.label for line in result.breakdown]
            values = [line.monthly_value for line in result.breakdown]
            y = np.arange(len(labels))

            ax1.barh(y, values, color=self.colors['target'])
            ax1.set_yticks(y)
            ax1.set_yticklabels(labels)
            ax1.invert_yaxis()
            ax1.set_title('Monthly Cost Breakdown', fontsize=14, fontweight='bold')
            ax1.set_xlabel('Monthly Cost ($)')
            ax1.grid(True, alpha=0.3)

            totals = [source.monthly_cost, result.total_monthly_cost]
            x = np.arange(2)
            ax2.bar(x, totals, 0.6, color=[self.colors['source'], self.colors['target']])
            ax2.set_xticks(x)
            ax2.set_xticklabels(['Source', 'Target Cluster'])
            ax2.set_title('Source vs. Target Monthly Cost', fontsize=14, fontweight='bold')
            ax2.set_ylabel('Monthly Cost ($)')
            ax2.grid(True, alpha=0.3)

            for i, total in enumerate(totals):
                ax2.text(i, total + max(max(totals), 1) * 0.01, f'${total:,.0f}',
                         ha='center', va='bottom', fontweight='bold')

            savings_color = self.colors['savings'] if result.savings_amount >= 0 else self.colors['loss']
            ax2.text(0.5, 0.95, f"Savings: {result.savings_percent:.1f}%", transform=ax2.transAxes,
                     ha='center', va='top', color=savings_color, fontweight='bold')

            plt.tight_layout()

            buffer = BytesIO()
            plt.savefig(buffer, format='png', dpi=150, bbox_inches='tight')
            buffer.seek(0)
            plt.close(fig)
            return buffer

        except (ValueError, RuntimeError) as e:
            logger.error("Error generating cost chart: %s", e)
            plt.close('all')
            return None
