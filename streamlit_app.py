import logging
import time
import traceback
from io import BytesIO

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
import streamlit as st

from catalog import DEFAULT_CATALOG
from comparison import instance_type_impact
from config import Config
from cost_model import estimate_source_monthly_cost
from migration_engine import MigrationEngine
from models import (
    InstanceSelection,
    InvalidConfiguration,
    OperationalConfig,
    SourceProfile,
    StorageConfig,
    TargetTopology,
    TierStorage,
    WorkloadProfile,
)
from report_generator import MigrationReportGenerator
from utils import (
    export_to_csv,
    format_currency,
    format_payback,
    get_bulk_template,
    parse_uploaded_file,
    project_storage_growth,
)

logging.basicConfig(level=Config.LOG_LEVEL, format="%(asctime)s %(name)s %(levelname)s %(message)s")
logger = logging.getLogger(__name__)

TIER_LABELS = {
    "sql": "SQL Nodes",
    "storage": "Storage Nodes",
    "placement": "Placement Nodes",
    "analytics": "Analytics Nodes",
}


def create_cost_breakdown_chart(result):
    """Horizontal bar chart of every cost line"""
    breakdown = [line for line in result.breakdown if line.monthly_value > 0]

    fig = go.Figure(go.Bar(
        x=[line.monthly_value for line in breakdown],
        y=[line.label for line in breakdown],
        orientation='h',
        marker_color='#2196F3',
        text=[f"${line.monthly_value:,.0f}" for line in breakdown],
        textposition='auto'
    ))

    fig.update_layout(
        title={'text': "💰 Monthly Cost Breakdown", 'x': 0.5, 'font': {'size': 16}},
        xaxis_title="Monthly Cost ($)",
        yaxis={'autorange': 'reversed'},
        height=400,
        font=dict(size=12)
    )
    return fig


def create_cost_share_pie(result):
    breakdown = [line for line in result.breakdown if line.monthly_value > 0]

    fig = go.Figure(data=[go.Pie(
        labels=[line.label for line in breakdown],
        values=[line.monthly_value for line in breakdown],
        hole=.4,
        textinfo='label+percent',
        textfont_size=10
    )])

    fig.update_layout(
        title={'text': "🥧 Cost Share", 'x': 0.5, 'font': {'size': 16}},
        showlegend=False,
        height=400,
        font=dict(size=10)
    )
    return fig


def create_source_vs_target_chart(source, result):
    colors = ['#FF9800', '#2196F3']
    fig = go.Figure(go.Bar(
        x=['Source Database', 'Distributed SQL Cluster'],
        y=[source.monthly_cost, result.total_monthly_cost],
        marker_color=colors,
        text=[f"${source.monthly_cost:,.0f}", f"${result.total_monthly_cost:,.0f}"],
        textposition='auto'
    ))

    fig.update_layout(
        title={'text': "⚖️ Source vs. Target Monthly Cost", 'x': 0.5, 'font': {'size': 16}},
        yaxis_title="Monthly Cost ($)",
        height=400,
        font=dict(size=12)
    )
    return fig


def create_storage_projection_chart(storage_gb, monthly_growth_percent):
    """Create storage growth projection chart"""
    projection = pd.DataFrame(project_storage_growth(storage_gb, monthly_growth_percent))

    fig = go.Figure()

    fig.add_trace(go.Scatter(
        x=projection['month'],
        y=projection['storage_gb'],
        mode='lines+markers',
        name='Projected Storage',
        line=dict(color='#2E8B57', width=3),
        marker=dict(size=6),
        fill='tozeroy',
        fillcolor='rgba(46, 139, 87, 0.1)'
    ))

    fig.add_trace(go.Scatter(
        x=[0],
        y=[storage_gb],
        mode='markers',
        name='Current Storage',
        marker=dict(size=12, color='red', symbol='diamond')
    ))

    fig.update_layout(
        title={
            'text': f"💾 Storage Growth Projection ({monthly_growth_percent:.0f}% monthly growth)",
            'x': 0.5,
            'font': {'size': 16}
        },
        xaxis_title="Months from Now",
        yaxis_title="Storage (GB)",
        showlegend=True,
        height=350,
        font=dict(size=12)
    )
    return fig


def create_comparison_chart(comparison_rows):
    df = pd.DataFrame([{
        'Configuration': f"{row.name} ({row.source.instance_class})",
        'Source': row.source.monthly_cost,
        'Cluster': row.monthly_cost,
    } for row in comparison_rows])
    df = df.melt(id_vars='Configuration', var_name='Deployment', value_name='Monthly Cost')

    fig = px.bar(
        df, x='Configuration', y='Monthly Cost', color='Deployment', barmode='group',
        color_discrete_map={'Source': '#FF9800', 'Cluster': '#2196F3'},
        title="📊 Reference Configurations: Source vs. Cluster"
    )
    fig.update_layout(title={'x': 0.5, 'font': {'size': 16}}, height=400)
    return fig


def create_bulk_results_summary(batch_results):
    rows = []
    for name, data in batch_results.items():
        if 'error' in data:
            continue
        source, result = data['source'], data['result']
        rows.append({
            'Workload': name,
            'Source Instance': f"{source.instance_class} x{source.instance_count}",
            'Source Cost': source.monthly_cost,
            'SQL': result.target.sql_nodes,
            'Storage': result.target.storage_nodes,
            'Placement': result.target.placement_nodes,
            'Analytics': result.target.analytics_nodes,
            'Cluster Cost': result.total_monthly_cost,
            'Savings': result.savings_amount,
            'Savings %': round(result.savings_percent, 1),
            'Payback': format_payback(result.payback_months),
        })
    return pd.DataFrame(rows)


def tier_storage_inputs(tier, default_size):
    storage_class = st.selectbox(
        "Storage Class", list(DEFAULT_CATALOG.volume_types.keys()), index=0, key=f"{tier}_storage_class"
    )
    size_gb = st.number_input("Size per Node (GB)", min_value=0, value=default_size, step=100,
                              key=f"{tier}_storage_size")
    iops = st.number_input("Provisioned IOPS", min_value=0, value=Config.BASELINE_IOPS, step=1000,
                           key=f"{tier}_storage_iops")
    throughput = st.number_input("Throughput (MB/s)", min_value=0, value=Config.BASELINE_THROUGHPUT_MBS, step=25,
                                 key=f"{tier}_storage_throughput")
    return TierStorage(storage_class, size_gb, iops, throughput)


# Configure Streamlit
st.set_page_config(
    page_title=Config.APP_NAME,
    layout="wide",
    page_icon="🚀"
)

# Custom CSS
st.markdown("""
<style>
    .main > div {
        padding-top: 2rem;
    }
    .tier-box {
        background: #e3f2fd;
        border: 2px solid #2196f3;
        border-radius: 8px;
        padding: 1rem;
        margin: 0.5rem 0;
    }
    .savings-box {
        background: #e8f5e8;
        border: 1px solid #4caf50;
        border-radius: 4px;
        padding: 0.5rem;
        margin: 0.5rem 0;
    }
    .loss-box {
        background: #fff3cd;
        border: 1px solid #ffc107;
        border-radius: 4px;
        padding: 0.5rem;
        margin: 0.5rem 0;
    }
    .bulk-info {
        background: #e7f3ff;
        border: 1px solid #2196f3;
        border-radius: 4px;
        padding: 1rem;
        margin: 1rem 0;
    }
</style>
""", unsafe_allow_html=True)


@st.cache_resource
def get_engine():
    return MigrationEngine()


@st.cache_resource
def get_report_generator():
    return MigrationReportGenerator()


engine = get_engine()
report_generator = get_report_generator()
instance_classes = list(DEFAULT_CATALOG.instance_types.keys())
source_classes = list(DEFAULT_CATALOG.source_instance_types.keys())

# Header
st.title("🚀 Distributed SQL Migration Calculator")
st.markdown("**Size and price a distributed SQL cluster for an existing relational database**")

previous_result = st.session_state.get('result')

# Sidebar Configuration
with st.sidebar:
    st.header("⚙️ Configuration")

    with st.expander("🗄️ Source Database", expanded=True):
        instance_class = st.selectbox("Instance Class", source_classes, index=source_classes.index("db.r5.2xlarge"))
        instance_count = st.number_input("Instance Count", min_value=1, max_value=20, value=2, step=1)
        multi_az = st.checkbox("Multi-AZ", value=True)
        read_replica_count = st.number_input("Read Replicas", min_value=0, max_value=15, value=1, step=1)
        storage_gb = st.number_input("Storage (GB)", min_value=0, value=1000, step=100)
        provisioned_iops = st.number_input("Provisioned IOPS", min_value=0, value=3000, step=1000)
        read_ops = st.number_input("Read ops/sec", min_value=0, value=5000, step=500)
        write_ops = st.number_input("Write ops/sec", min_value=0, value=1000, step=100)

        estimated_cost = estimate_source_monthly_cost(
            DEFAULT_CATALOG, instance_class, instance_count, multi_az, read_replica_count
        )
        source_monthly_cost = st.number_input(
            "Current Monthly Cost ($)", min_value=0.0, value=float(estimated_cost), step=100.0,
            help="Defaults to the catalog estimate for the selected deployment"
        )

    with st.expander("📊 Workload Profile", expanded=True):
        read_write_ratio = st.selectbox(
            "Read/Write Ratio", Config.READ_WRITE_RATIOS, index=1,
            format_func=lambda x: f"{x} ({engine.sizing.READ_WRITE_RATIOS[x]['description']})"
        )
        workload_type = st.selectbox("Workload Type", Config.WORKLOAD_TYPES, index=0)
        st.info(f"📖 {engine.sizing.WORKLOAD_TYPES[workload_type]['description']}")
        concurrent_connections = st.number_input("Concurrent Connections", min_value=1, value=200, step=50)
        traffic_spikes = st.checkbox("Traffic Spikes", value=True)
        peak_to_normal_ratio = st.slider("Peak to Normal Ratio", 1.0, 10.0, 3.0, 0.5, disabled=not traffic_spikes)
        data_growth_rate = st.slider("Data Growth (% per month)", 0, 50, 10)

    with st.expander("🏗️ Cluster Settings", expanded=False):
        replication_factor = st.slider(
            "Replication Factor", Config.MIN_REPLICATION_FACTOR, Config.MAX_REPLICATION_FACTOR, 3
        )
        placement_nodes = st.number_input("Placement Nodes", min_value=Config.MIN_TIER_NODES, value=3, step=1)

    with st.expander("🖥️ Instance Classes", expanded=False):
        current_sql_class = previous_result.selection.sql_instance_class if previous_result else \
            InstanceSelection().sql_instance_class
        sql_instance_class = st.selectbox(
            "SQL Tier", instance_classes, index=instance_classes.index(current_sql_class)
            if current_sql_class in instance_classes else 0,
            help="Chosen from source memory whenever the source instance class changes"
        )
        storage_instance_class = st.selectbox("Storage Tier", instance_classes, index=instance_classes.index("i3.4xlarge"))
        placement_instance_class = st.selectbox("Placement Tier", instance_classes, index=instance_classes.index("m5.4xlarge"))
        analytics_instance_class = st.selectbox("Analytics Tier", instance_classes, index=instance_classes.index("i3.8xlarge"))
        monitoring_instance_class = st.selectbox("Monitoring", instance_classes, index=instance_classes.index("c5.2xlarge"))

    with st.expander("💾 Block Storage", expanded=False):
        use_local_instance_store = st.checkbox("Use local NVMe on storage nodes", value=True)
        st.markdown("**SQL Tier**")
        sql_storage = tier_storage_inputs("sql", 100)
        st.markdown("**Storage Tier** (additional volume)" if use_local_instance_store else "**Storage Tier**")
        storage_storage = tier_storage_inputs("storage", 0)
        st.markdown("**Placement Tier**")
        placement_storage = tier_storage_inputs("placement", 100)
        st.markdown("**Analytics Tier**")
        analytics_storage = tier_storage_inputs("analytics", 1000)

    with st.expander("🔧 Operations", expanded=False):
        backup_enabled = st.checkbox("Backups", value=True)
        backup_size_gb = st.number_input("Backup Size (GB)", min_value=0, value=int(storage_gb), step=100,
                                          disabled=not backup_enabled)
        network_traffic_gb = st.number_input("Network Traffic (GB/month)", min_value=0, value=5000, step=500)
        orchestration_cluster_count = st.number_input("Kubernetes Clusters", min_value=0, value=1, step=1)
        orchestration_cluster_cost = st.number_input(
            "Cluster Control Plane ($/month)", min_value=0.0, value=Config.ORCHESTRATION_CLUSTER_COST, step=10.0
        )
        orchestration_monitoring_cost = st.number_input(
            "Monitoring Tooling ($/month)", min_value=0.0, value=Config.ORCHESTRATION_MONITORING_COST, step=50.0
        )
        one_time_migration_cost = st.number_input(
            "One-time Migration Cost ($)", min_value=0.0, value=Config.MIGRATION_COST, step=1000.0
        )
        staff_fte = st.number_input("Operations Staff (FTE)", min_value=0.0, value=0.5, step=0.25)

source = SourceProfile(
    instance_class=instance_class,
    instance_count=instance_count,
    storage_gb=storage_gb,
    provisioned_iops=provisioned_iops,
    read_ops_per_sec=read_ops,
    write_ops_per_sec=write_ops,
    monthly_cost=source_monthly_cost,
    multi_az=multi_az,
    read_replica_count=read_replica_count,
)
workload = WorkloadProfile(
    read_write_ratio=read_write_ratio,
    workload_type=workload_type,
    concurrent_connections=concurrent_connections,
    traffic_spikes=traffic_spikes,
    peak_to_normal_ratio=peak_to_normal_ratio,
    data_growth_rate=data_growth_rate,
)
target = TargetTopology(replication_factor=replication_factor, placement_nodes=placement_nodes)
selection = InstanceSelection(
    sql_instance_class=sql_instance_class,
    storage_instance_class=storage_instance_class,
    placement_instance_class=placement_instance_class,
    analytics_instance_class=analytics_instance_class,
    monitoring_instance_class=monitoring_instance_class,
)
storage_config = StorageConfig(
    sql=sql_storage,
    storage=storage_storage,
    placement=placement_storage,
    analytics=analytics_storage,
    use_local_instance_store=use_local_instance_store,
)
operational = OperationalConfig(
    backup_enabled=backup_enabled,
    backup_size_gb=backup_size_gb,
    network_traffic_gb=network_traffic_gb,
    orchestration_cluster_count=orchestration_cluster_count,
    orchestration_cluster_monthly_cost=orchestration_cluster_cost,
    orchestration_monitoring_monthly_cost=orchestration_monitoring_cost,
    one_time_migration_cost=one_time_migration_cost,
    staff_fte=staff_fte,
)

try:
    result = engine.recompute(
        source, workload, target, selection, storage_config, operational,
        history=previous_result.history if previous_result else [],
        previous_instance_class=previous_result.source_instance_class if previous_result else None,
    )
except InvalidConfiguration as e:
    logger.warning("Rejected configuration: %s", e)
    st.error("❌ Invalid configuration:\n\n" + "\n".join(f"- {error}" for error in e.errors))
    st.stop()

st.session_state['result'] = result

for warning in result.warnings:
    st.warning(f"⚠️ Unknown {warning}, fallback pricing applied")

# Main tabs
tab1, tab2, tab3, tab4 = st.tabs([
    "🧮 Migration Calculator", "📊 Instance Comparison", "📜 Change History", "📂 Bulk Upload Sizing"
])

with tab1:
    summary = result.cost_summary

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        st.metric("Cluster Monthly Cost", format_currency(result.total_monthly_cost))
    with col2:
        st.metric("Source Monthly Cost", format_currency(source.monthly_cost))
    with col3:
        st.metric("Monthly Savings", format_currency(result.savings_amount), f"{result.savings_percent:.1f}%")
    with col4:
        st.metric("Payback Period", format_payback(result.payback_months))

    if result.savings_amount >= 0:
        st.markdown(f"""
        <div class="savings-box">
            ✅ <strong>Annual savings:</strong> {format_currency(summary.annual_savings)}
        </div>
        """, unsafe_allow_html=True)
    else:
        st.markdown(f"""
        <div class="loss-box">
            ⚠️ <strong>The cluster costs {format_currency(-result.savings_amount)} more per month</strong>;
            the migration cost is not recovered.
        </div>
        """, unsafe_allow_html=True)

    st.header("🏗️ Cluster Topology")
    tier_cols = st.columns(5)
    tiers = [
        ("sql", result.target.sql_nodes),
        ("storage", result.target.storage_nodes),
        ("placement", result.target.placement_nodes),
        ("analytics", result.target.analytics_nodes),
    ]
    for col, (tier, nodes) in zip(tier_cols, tiers):
        with col:
            st.markdown(f"""
            <div class="tier-box">
                <strong>{TIER_LABELS[tier]}</strong><br>
                {nodes} x {result.selection.for_tier(tier)}
            </div>
            """, unsafe_allow_html=True)
    with tier_cols[4]:
        st.markdown(f"""
        <div class="tier-box">
            <strong>Kubernetes Workers</strong><br>
            {result.target.worker_nodes} nodes
        </div>
        """, unsafe_allow_html=True)

    local_capacity = engine.costing.local_storage_capacity_gb(result.selection, storage_config)
    if local_capacity:
        st.info(f"💾 {local_capacity:,} GB local NVMe per storage node "
                f"({local_capacity * result.target.storage_nodes:,} GB across the tier)")

    col1, col2 = st.columns(2)
    with col1:
        st.plotly_chart(create_cost_breakdown_chart(result), use_container_width=True)
    with col2:
        st.plotly_chart(create_source_vs_target_chart(source, result), use_container_width=True)

    col1, col2 = st.columns(2)
    with col1:
        st.plotly_chart(create_cost_share_pie(result), use_container_width=True)
    with col2:
        st.plotly_chart(create_storage_projection_chart(storage_gb, data_growth_rate), use_container_width=True)

    st.subheader("🔍 Source Instance Class Impact")
    impact_df = pd.DataFrame([{
        'Instance Class': row.instance_class,
        'vCPU': row.vcpu,
        'Memory (GB)': row.memory_gb,
        'SQL Nodes': row.sql_nodes,
        'SQL Instance': row.sql_instance_class,
        'SQL Tier Cost': format_currency(row.sql_tier_cost),
    } for row in instance_type_impact(instance_count, DEFAULT_CATALOG)])
    st.dataframe(impact_df, use_container_width=True, hide_index=True)

    st.subheader("📥 Export")
    col1, col2 = st.columns(2)
    with col1:
        try:
            excel_report = report_generator.generate_excel_report(source, result, engine.compare_reference_set())
            st.download_button(
                label="📥 Download Excel Report",
                data=excel_report.getvalue(),
                file_name=f"distsql_migration_{int(time.time())}.xlsx",
                mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
                use_container_width=True
            )
        except Exception as e:
            st.error(f"❌ Error generating report: {str(e)}")
            with st.expander("Error Details"):
                st.code(traceback.format_exc())
    with col2:
        chart = report_generator.generate_cost_chart(source, result)
        if chart is not None:
            st.download_button(
                label="📥 Download Cost Chart (PNG)",
                data=chart.getvalue(),
                file_name=f"distsql_cost_chart_{int(time.time())}.png",
                mime="image/png",
                use_container_width=True
            )

with tab2:
    st.header("📊 Reference Configuration Comparison")
    st.markdown("Baseline migration of common source sizes (two instances each), priced on instance cost only.")

    comparison_rows = engine.compare_reference_set()
    comparison_df = report_generator.comparison_dataframe(comparison_rows)
    st.dataframe(comparison_df, use_container_width=True, hide_index=True)
    st.plotly_chart(create_comparison_chart(comparison_rows), use_container_width=True)

with tab3:
    st.header("📜 Source Instance Class Changes")

    if result.history:
        history_df = pd.DataFrame([{
            '#': entry.sequence_id,
            'From': entry.from_instance_class,
            'To': entry.to_instance_class,
            'vCPU': entry.vcpu_change,
            'Memory': entry.memory_change,
            'SQL Nodes': entry.sql_nodes_change,
            'Storage Nodes': entry.storage_nodes_change,
            'SQL Instance': entry.instance_class_change,
            'Instance Cost': format_currency(entry.monthly_cost),
        } for entry in reversed(result.history)])
        st.dataframe(history_df, use_container_width=True, hide_index=True)

        col1, col2 = st.columns(2)
        with col1:
            st.download_button(
                label="📥 Export History CSV",
                data=export_to_csv(result.history),
                file_name=f"distsql_history_{int(time.time())}.csv",
                mime="text/csv",
                use_container_width=True
            )
        with col2:
            if st.button("🗑️ Clear History", use_container_width=True):
                st.session_state['result'] = None
                st.rerun()
    else:
        st.info(f"Change the source instance class to record a transition (last {Config.HISTORY_LIMIT} kept).")

with tab4:
    st.header("📂 Bulk Workload Sizing")

    st.markdown("""
    <div class="bulk-info">
        <h4>🚀 Bulk Upload Feature</h4>
        <p>Upload a CSV or Excel file with one source database per row to size and price every migration at once.
        Each row uses the default cluster, instance and storage settings.</p>
    </div>
    """, unsafe_allow_html=True)

    template_df = get_bulk_template()
    col1, col2 = st.columns(2)
    with col1:
        st.download_button(
            label="📥 Download CSV Template",
            data=template_df.to_csv(index=False),
            file_name="distsql_bulk_template.csv",
            mime="text/csv"
        )
    with col2:
        buffer = BytesIO()
        template_df.to_excel(buffer, index=False, engine='openpyxl')
        buffer.seek(0)
        st.download_button(
            label="📥 Download Excel Template",
            data=buffer.getvalue(),
            file_name="distsql_bulk_template.xlsx",
            mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
        )

    uploaded_file = st.file_uploader("Choose a CSV or Excel file", type=['csv', 'xlsx', 'xls'])

    if uploaded_file is not None:
        rows, errors = parse_uploaded_file(uploaded_file)
        for error in errors:
            st.error(f"❌ {error}")

        if rows:
            st.success(f"✅ {len(rows)} valid workload(s) found")
            if st.button("🚀 Process All Workloads", type="primary"):
                with st.spinner(f"🔄 Sizing {len(rows)} workload(s)..."):
                    st.session_state['bulk_results'] = engine.size_batch(rows)

    if st.session_state.get('bulk_results'):
        bulk_results = st.session_state['bulk_results']
        failed = {name: data['error'] for name, data in bulk_results.items() if 'error' in data}

        col1, col2, col3 = st.columns(3)
        with col1:
            st.metric("Total Workloads", len(bulk_results))
        with col2:
            st.metric("Successful", len(bulk_results) - len(failed))
        with col3:
            st.metric("Failed", len(failed))

        summary_df = create_bulk_results_summary(bulk_results)
        if not summary_df.empty:
            st.dataframe(summary_df, use_container_width=True, hide_index=True)

            fig_bulk = px.bar(
                summary_df, x='Workload', y=['Source Cost', 'Cluster Cost'], barmode='group',
                title="💰 Source vs. Cluster Cost by Workload"
            )
            fig_bulk.update_layout(title={'x': 0.5}, yaxis_title="Monthly Cost ($)", height=400)
            st.plotly_chart(fig_bulk, use_container_width=True)

        for name, error in failed.items():
            st.error(f"{name}: {error}")

        st.download_button(
            label="📥 Export Bulk Results (Excel)",
            data=report_generator.generate_batch_excel_report(bulk_results).getvalue(),
            file_name=f"distsql_bulk_results_{int(time.time())}.xlsx",
            mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
        )

# Footer
st.markdown("---")
st.caption(f"{Config.APP_NAME} v{Config.APP_VERSION} · pricing catalog {DEFAULT_CATALOG.VERSION}")
