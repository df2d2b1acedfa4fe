"""
Streamlit UI for the Film Roll Simulator.

Features:
- Credit note calculator (weight or area based)
- Roll weight and rolled size from film specs
- Pallet placement summary for the order
- Freight quote for the order weight
"""
import streamlit as st
import sys
from pathlib import Path
from datetime import datetime

# Add src to path for imports
src_path = Path(__file__).parent.parent.parent
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from film_tool.config.settings import get_settings, configure_logging
from film_tool.engine.formulas import credit_note_for_rolls, UNIT_KG, UNIT_M2
from film_tool.rates.rate_loader import rate_table_frame
from film_tool.services.simulator_service import (
    SimulatorService,
    SimulatorInputs,
    parse_number,
)


st.set_page_config(
    page_title="Film Roll Simulator",
    layout="wide",
    initial_sidebar_state="expanded"
)


@st.cache_resource
def get_service():
    """Get cached simulator instance."""
    configure_logging()
    return SimulatorService()


@st.cache_resource
def get_settings_cached():
    """Get cached settings."""
    return get_settings()


try:
    service = get_service()
    settings = get_settings_cached()
except Exception as e:
    st.error(f"System Error: {e}")
    st.stop()


# ============================================================================
# SIDEBAR: Roll Specification
# ============================================================================
with st.sidebar:
    st.header("🎞️ Film Roll")

    with st.container(border=True):
        thickness = st.number_input("Thickness T (μm)", min_value=0.0, value=25.0, step=1.0)
        width = st.number_input("Width W (mm)", min_value=0.0, value=500.0, step=10.0)
        length = st.number_input("Length L (m)", min_value=0.0, value=1000.0, step=100.0)
        density = st.number_input("Density ρ (g/cm³)", min_value=0.0, value=0.92, step=0.01)
        quantity = st.number_input("Rolls", min_value=0, value=10, step=1)
        inner_diameter = st.number_input(
            "Core diameter (cm)", min_value=0.0, value=settings.default_inner_diameter_cm, step=0.01
        )


# ============================================================================
# MAIN CONTENT: TABBED INTERFACE
# ============================================================================
st.title("Film Roll Simulator")
st.caption(f"Freight engine active | {datetime.now().strftime('%Y-%m-%d')}")

tab1, tab2, tab3, tab4, tab5 = st.tabs(
    ["🧾 Credit Note", "⚖️ Weight & Size", "📦 Pallets", "🚚 Shipping", "📊 Rate Table"]
)

options = service.options()
vendor_names = {v["id"]: v["name"] for v in options["vendors"]}
region_names = {r["id"]: r["name"] for r in options["regions"]}


# ============================================================================
# TAB 1: CREDIT NOTE
# ============================================================================
with tab1:
    col1, col2 = st.columns([1.2, 1.8], gap="large")

    with col1:
        with st.container(border=True):
            unit = st.radio("Pricing unit", [UNIT_KG, UNIT_M2], horizontal=True)
            cn_quantity = st.number_input("Rolls", min_value=0, value=1, step=1, key="cn_qty")
            cn_length = st.text_input("Length L (m)", value="", placeholder="e.g. 1000")
            cn_thickness = st.text_input("Thickness T (μm)", value="", placeholder="e.g. 25")
            cn_density = st.text_input("Density (g/cm³)", value="", placeholder=f"{settings.credit_note_default_density}")
            width_a = st.text_input("Width A (mm)", value="", placeholder="e.g. 500")
            width_b = st.text_input("Width B (mm)", value="", placeholder="e.g. 480")

    with col2:
        result = credit_note_for_rolls(
            unit=unit,
            length_m=parse_number(cn_length),
            thickness_um=parse_number(cn_thickness),
            width_a_mm=parse_number(width_a),
            width_b_mm=parse_number(width_b),
            quantity=cn_quantity,
            density=parse_number(cn_density, settings.credit_note_default_density),
            tax_rate=settings.tax_rate,
        )

        m1, m2 = st.columns(2)
        m1.metric("Roll A", f"{result.weight_a_kg:.2f} kg", f"{result.area_a_m2:.2f} m²", delta_color="off")
        m2.metric("Roll B", f"{result.weight_b_kg:.2f} kg", f"{result.area_b_m2:.2f} m²", delta_color="off")

        m3, m4 = st.columns(2)
        m3.metric("Credit note amount", f"{result.note.discount:.2f}")
        m4.metric("Credit note tax", f"{result.note.tax:.2f}")

        with st.expander("🔍 Formula"):
            basis = "weight" if unit == UNIT_KG else "area"
            st.caption("W = T × W × L × ρ ÷ 1000 ÷ 1000  |  M² = L × (W ÷ 1000)")
            st.caption(f"Amount = (A {basis} − B {basis}) × N")
            st.caption(f"Tax = round(N × A {basis} × {settings.tax_rate}) − round(N × B {basis} × {settings.tax_rate})")


# ============================================================================
# Shared simulation for the roll tabs
# ============================================================================
report = service.simulate(SimulatorInputs(
    thickness_um=thickness,
    width_mm=width,
    length_m=length,
    density=density,
    quantity=int(quantity),
    inner_diameter_cm=inner_diameter,
))


# ============================================================================
# TAB 2: WEIGHT & SIZE
# ============================================================================
with tab2:
    c1, c2, c3 = st.columns(3)
    c1.metric("Single roll weight", f"{report.roll.single_weight_kg:.2f} kg")
    c2.metric("Outer diameter", f"{report.roll.outer_diameter_cm:.2f} cm")
    c3.metric("Total weight", f"{report.roll.total_weight_kg:.2f} kg")

    st.caption(
        f"Rolled size: {report.roll.length_cm:.2f} × {report.roll.width_cm:.2f} × "
        f"{report.roll.height_cm:.2f} cm (L × W × H)"
    )


# ============================================================================
# TAB 3: PALLETS
# ============================================================================
with tab3:
    c1, c2, c3 = st.columns(3)
    c1.metric("Best arrangement", report.pallets.arrangement)
    c2.metric("Rolls per pallet", report.pallets.max_per_pallet)
    c3.metric("Pallets needed", report.pallets.pallets_needed, f"{int(quantity)} rolls", delta_color="off")
    st.caption(
        f"Pallet {settings.pallet_size_cm:g} × {settings.pallet_size_cm:g} cm | "
        f"roll Ø {report.roll.outer_diameter_cm:.2f} cm, height {report.roll.height_cm:.2f} cm"
    )
    st.info("Rolls stand upright only; stacking is not allowed.")


# ============================================================================
# TAB 4: SHIPPING
# ============================================================================
with tab4:
    col1, col2 = st.columns([1.2, 1.8], gap="large")

    with col1:
        with st.container(border=True):
            vendor_id = st.selectbox(
                "Vendor", options=list(vendor_names), format_func=lambda v: vendor_names[v]
            )
            region_id = st.selectbox(
                "Route", options=[None] + list(region_names),
                format_func=lambda r: "Select a route" if r is None else region_names[r],
            )

            sub_region_id = None
            if service.needs_sub_region(region_id):
                region = service.rate_table.get_region(region_id)
                sub_names = {s.id: s.name for s in region.sub_regions}
                sub_region_id = st.selectbox(
                    "Delivery area", options=[None] + list(sub_names),
                    format_func=lambda s: "Select a delivery area" if s is None else sub_names[s],
                )

            weight_text = st.text_input("Weight (kg)", value=f"{report.roll.total_weight_kg:.2f}")

    with col2:
        result = service.quote_shipping(vendor_id, region_id, sub_region_id, weight_text)
        if result is None:
            st.info("Select a route and enter a weight to see the freight quote.")
        elif result.success:
            st.metric("Freight", f"${result.price:,.0f}")
            st.caption(f"**Bracket:** {result.tier_description}")
            st.caption(f"**Method:** {result.calculation_method}")
            with st.expander("🔍 Resolution Details"):
                for step in result.trace:
                    if step.value:
                        st.caption(f"**{step.step}**: {step.description} = `{step.value}`")
                    else:
                        st.caption(f"**{step.step}**: {step.description}")
        else:
            st.error(result.error_message)

    st.caption("All results are estimates; the carrier's quote is final.")


# ============================================================================
# TAB 5: RATE TABLE
# ============================================================================
with tab5:
    st.subheader("📊 Configured Tiers")
    tiers_df = rate_table_frame(service.rate_table)
    tiers_df['max_weight'] = tiers_df['max_weight'].map(lambda w: "∞" if w == float('inf') else f"{w:g}")
    tiers_df['price'] = tiers_df['price'].map(lambda p: "not carriable" if p == -1 else f"{p:,.0f}")
    st.dataframe(tiers_df, use_container_width=True, hide_index=True)
    st.caption(f"Data directory: {settings.data_dir}")
