# ui/streamlit_app.py
"""
OptiFuel — Streamlit Dashboard
==============================
Interactive UI for the OptiFuel nutrition assistant. All state lives in the
API; this app renders whatever the API reports and posts user actions back.
"""

import sys
from pathlib import Path
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
import os

import streamlit as st
import requests
import pandas as pd
import plotly.graph_objects as go

# ========================================
# PATH SETUP
# ========================================
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from dotenv import load_dotenv
load_dotenv()

from agents.nutrition_agent import SLOT_LABEL_KEYS
from memory.models import DIET_OPTIONS, GENDER_OPTIONS, MEAL_SLOTS, SportType
from tools.localization import SUPPORTED_LANGUAGES, translate

# ========================================
# CONFIGURATION
# ========================================
API_BASE = os.environ.get("OPTIFUEL_API_URL", "http://localhost:8000/api/v1")
REQUEST_TIMEOUT_SHORT = 5
REQUEST_TIMEOUT_LONG = 60

COMMON_ALLERGIES = ["Peanuts", "Tree Nuts", "Dairy", "Gluten", "Eggs", "Shellfish", "Soy"]

LANGUAGE_LABELS = {"en": "English", "sw": "Kiswahili"}


@dataclass
class AppConfig:
    """Application configuration."""
    page_title: str = "OptiFuel — Athlete Nutrition"
    page_icon: str = "🥗"
    layout: str = "wide"


# ========================================
# PAGE SETUP
# ========================================
st.set_page_config(
    page_title=AppConfig.page_title,
    page_icon=AppConfig.page_icon,
    layout=AppConfig.layout,
    initial_sidebar_state="expanded"
)


# ========================================
# STYLING
# ========================================
def load_styles():
    """Load custom CSS styles."""
    st.markdown("""
    <style>
        .stButton>button {
            border-radius: 8px;
            width: 100%;
            font-weight: 600;
        }
        .meal-slot {
            font-size: 0.8rem;
            color: #AAA;
            text-transform: uppercase;
            letter-spacing: 1px;
        }
        .tip-box {
            font-style: italic;
            color: #BBB;
            padding: 1rem;
            background: rgba(255,255,255,0.05);
            border-radius: 8px;
        }
    </style>
    """, unsafe_allow_html=True)


# ========================================
# SESSION STATE
# ========================================
def init_session_state():
    """Initialize session state variables."""
    defaults = {
        "user_id": "default",
        "language": "en",
        "profile_step": 1,
        "profile_draft": {},
        "plan": None,
        "tip_audio": {},
        "event_result": None,
    }
    for key, value in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = value


def t(key: str, **params) -> str:
    return translate(key, st.session_state.language, **params)


# ========================================
# API CLIENT
# ========================================
class APIClient:
    """Handles all API communication."""

    def __init__(self, base_url: str):
        self.base_url = base_url
        self.root_url = base_url.replace("/api/v1", "").rstrip("/")

    def check_health(self) -> tuple[bool, dict]:
        """Check if the API is online."""
        try:
            response = requests.get(self.root_url, timeout=REQUEST_TIMEOUT_SHORT)
            if response.status_code == 200:
                return True, response.json()
        except requests.RequestException:
            pass
        return False, {}

    @staticmethod
    def _error(response: requests.Response) -> dict:
        try:
            detail = response.json().get("detail")
        except ValueError:
            detail = None
        return {"error": detail or f"API Error: {response.status_code}", "status_code": response.status_code}

    def get(self, endpoint: str, params: Optional[dict] = None) -> dict:
        """Make GET request to API."""
        try:
            url = f"{self.base_url}/{endpoint}"
            params = params or {}
            params["user_id"] = st.session_state.user_id

            response = requests.get(url, params=params, timeout=REQUEST_TIMEOUT_LONG)

            if response.status_code == 200:
                return response.json()
            return self._error(response)

        except requests.exceptions.ConnectionError:
            return {"error": "API Offline"}
        except requests.RequestException as e:
            return {"error": str(e)}

    def post(self, endpoint: str, data: Optional[dict] = None) -> dict:
        """Make POST request to API."""
        try:
            url = f"{self.base_url}/{endpoint}"
            data = data or {}
            if "user_id" not in data:
                data["user_id"] = st.session_state.user_id

            response = requests.post(url, json=data, timeout=REQUEST_TIMEOUT_LONG)

            if response.status_code == 200:
                return response.json()
            return self._error(response)

        except requests.exceptions.ConnectionError:
            return {"error": "API Offline"}
        except requests.RequestException as e:
            return {"error": str(e)}

    def post_audio(self, endpoint: str, data: dict) -> tuple[Optional[bytes], Optional[str]]:
        """POST that returns raw audio bytes on success."""
        data.setdefault("user_id", st.session_state.user_id)
        try:
            response = requests.post(f"{self.base_url}/{endpoint}", json=data, timeout=REQUEST_TIMEOUT_LONG)
        except requests.RequestException as e:
            return None, str(e)
        if response.status_code == 200:
            return response.content, None
        return None, self._error(response)["error"]


# Initialize API client
api = APIClient(API_BASE)


# ========================================
# PROFILE FORM
# ========================================
class ProfileForm:
    """Three-step onboarding: personal details, body metrics, sport & diet."""

    @staticmethod
    def render() -> None:
        st.title("🥗 OptiFuel")
        st.caption(t(("personalInfo", "bodyMetrics", "sportAndDiet")[st.session_state.profile_step - 1]))
        step = st.session_state.profile_step
        draft = st.session_state.profile_draft
        st.progress(step / 3)

        if step == 1:
            ProfileForm._personal(draft)
        elif step == 2:
            ProfileForm._body(draft)
        else:
            ProfileForm._sport_and_diet(draft)

    @staticmethod
    def _personal(draft: dict) -> None:
        with st.form("profile_personal"):
            name = st.text_input(t("name"), value=draft.get("name", ""))
            age = st.number_input(t("age"), min_value=10, max_value=100, value=draft.get("age", 20))
            gender = st.selectbox(t("gender"), GENDER_OPTIONS)
            area = st.text_input(t("geographicalArea"), value=draft.get("geographical_area", "Nairobi, Kenya"))
            if st.form_submit_button(t("next"), type="primary"):
                if not name.strip():
                    st.warning(t("fillAllFields"))
                    return
                draft.update({"name": name.strip(), "age": int(age), "gender": gender, "geographical_area": area})
                st.session_state.profile_step = 2
                st.rerun()

    @staticmethod
    def _body(draft: dict) -> None:
        with st.form("profile_body"):
            height = st.number_input(t("height"), min_value=100.0, max_value=250.0, value=draft.get("height", 170.0))
            weight = st.number_input(t("weight"), min_value=30.0, max_value=200.0, value=draft.get("weight", 60.0))
            col_back, col_next = st.columns(2)
            back = col_back.form_submit_button(t("back"))
            nxt = col_next.form_submit_button(t("next"), type="primary")
        if back:
            st.session_state.profile_step = 1
            st.rerun()
        if nxt:
            draft.update({"height": float(height), "weight": float(weight)})
            st.session_state.profile_step = 3
            st.rerun()

    @staticmethod
    def _sport_and_diet(draft: dict) -> None:
        with st.form("profile_sport"):
            sport = st.selectbox(t("sport"), [s.value for s in SportType])
            diet = st.selectbox(t("diet"), DIET_OPTIONS)
            allergies = st.multiselect(t("allergies"), COMMON_ALLERGIES)
            other = st.text_input(t("otherAllergy"))
            col_back, col_save = st.columns(2)
            back = col_back.form_submit_button(t("back"))
            save = col_save.form_submit_button(t("createPlan"), type="primary")
        if back:
            st.session_state.profile_step = 2
            st.rerun()
        if save:
            payload = {
                **draft,
                "sport": sport,
                "dietary_restrictions": {"diet": diet, "allergies": allergies, "other_allergy": other},
            }
            result = api.post("profile", payload)
            if "error" in result:
                st.error(result["error"])
                return
            st.session_state.profile_step = 1
            st.session_state.profile_draft = {}
            st.rerun()


# ========================================
# PAGE SECTIONS
# ========================================
class HeaderSection:
    """Title, language switch and notifications bell."""

    @staticmethod
    def render(profile: dict) -> None:
        col_title, col_lang, col_bell = st.columns([4, 1, 1])

        with col_title:
            st.title("🥗 OptiFuel")
            badge = "⭐ Premium" if profile.get("subscription") == "Premium" else "Basic"
            st.caption(f"{t('welcomeBack', name=profile.get('name', ''))} • {badge}")

        with col_lang:
            current = st.session_state.language
            language = st.selectbox(
                "🌐",
                SUPPORTED_LANGUAGES,
                index=SUPPORTED_LANGUAGES.index(current),
                format_func=lambda code: LANGUAGE_LABELS.get(code, code),
                label_visibility="collapsed",
            )
            if language != current:
                result = api.post("language", {"language": language})
                if "error" not in result:
                    st.session_state.language = language
                    st.rerun()

        with col_bell:
            HeaderSection._notifications()

    @staticmethod
    def _notifications() -> None:
        data = api.get("notifications")
        if "error" in data:
            return
        unread = data.get("unread_count", 0)
        label = f"🔔 {unread}" if unread else "🔔"
        with st.popover(label):
            st.markdown(f"**{t('notifications')}**")
            items = data.get("notifications", [])
            if not items:
                st.caption(t("noNotifications"))
            for item in items:
                prefix = "" if item["read"] else "🔵 "
                st.markdown(f"{prefix}{item['message']}")
                st.caption(item["timestamp"][:16].replace("T", " "))
            if unread and st.button(t("markAllRead"), key="mark_all_read"):
                api.post("notifications/read-all")
                st.rerun()


class SidebarSection:
    """Hydration tracker and upgrade panel."""

    @staticmethod
    def render(profile: dict) -> None:
        with st.sidebar:
            SidebarSection._render_hydration()
            st.divider()
            UpgradePanel.render(profile)
            st.divider()
            if st.button("🔄 " + t("reset")):
                api.post("profile/reset")
                st.session_state.plan = None
                st.session_state.tip_audio = {}
                st.session_state.event_result = None
                st.rerun()

    @staticmethod
    def _render_hydration() -> None:
        st.markdown(f"### 💧 {t('hydrationTracker')}")
        data = api.get("hydration")
        if "error" in data:
            st.caption(data["error"])
            return

        st.plotly_chart(
            SidebarSection._create_gauge_chart(data["intake_ml"], data["daily_goal_ml"]),
            use_container_width=True,
        )
        if data.get("goal_reached"):
            st.success(t("hydrationGoalReached"))

        cols = st.columns(len(data["intake_options_ml"]))
        for col, amount in zip(cols, data["intake_options_ml"]):
            if col.button(f"+{amount}", key=f"water_{amount}"):
                api.post("hydration/add", {"amount_ml": amount})
                st.rerun()

    @staticmethod
    def _create_gauge_chart(intake: int, goal: int) -> go.Figure:
        """Create hydration gauge chart."""
        fig = go.Figure(go.Indicator(
            mode="gauge+number",
            value=intake,
            number={'suffix': " ml"},
            gauge={
                'axis': {'range': [0, goal], 'tickwidth': 1},
                'bar': {'color': "#4B9CD3"},
                'bgcolor': "rgba(0,0,0,0)",
                'steps': [
                    {'range': [0, goal * 0.5], 'color': 'rgba(255,75,75,0.2)'},
                    {'range': [goal * 0.5, goal], 'color': 'rgba(75,156,211,0.2)'},
                ],
            }
        ))
        fig.update_layout(height=180, margin=dict(l=10, r=10, t=10, b=10))
        return fig


class UpgradePanel:
    """Basic -> Premium checkout, driven by the API's upgrade snapshot."""

    @staticmethod
    def render(profile: dict) -> None:
        st.markdown("### ⭐ Premium")
        if profile.get("subscription") == "Premium":
            st.success("⭐ Premium")
            return

        flow = api.get("upgrade/state")
        step = flow.get("step", "closed")

        if step == "closed":
            st.caption(t("premiumRequired"))
            if st.button(t("upgradeNow"), type="primary"):
                api.post("upgrade/start")
                st.rerun()
            return

        if step == "input":
            phone = st.text_input(
                t("upgradeAmount"),
                value=flow.get("phone_number", ""),
                placeholder=t("safaricomNumberPlaceholder"),
            )
            if flow.get("error"):
                st.error(flow["error"])
            if st.button(t("initiatePayment")):
                api.post("upgrade/phone", {"phone_number": phone})
                st.rerun()
        elif step == "final_confirmation":
            st.markdown(f"**{t('finalConfirmationTitle')}**")
            st.write(t("finalConfirmationMessageUpgrade", amount=flow["price"], phoneNumber=flow["phone_number"]))
            if st.button(t("confirmPurchase"), type="primary"):
                api.post("upgrade/confirm")
                st.rerun()
        elif step == "simulated_pin":
            pin = st.text_input(t("enterPin"), type="password", max_chars=4)
            if flow.get("error"):
                st.error(flow["error"])
            if st.button(f"{t('payAmount')} {flow['currency']} {flow['price']}"):
                with st.spinner(t("processingPayment")):
                    api.post("upgrade/pin", {"pin": pin})
                st.rerun()
        elif step == "success":
            st.balloons()
            st.success(t("upgradeSuccessTitle"))

        if st.button("✖️", key="close_upgrade"):
            api.post("upgrade/close")
            st.rerun()


# ========================================
# TAB IMPLEMENTATIONS
# ========================================
class PlanTab:
    """Nutrition plan tab with meal details and delivery ordering."""

    @staticmethod
    def render() -> None:
        warning = api.get("nutrition/allergy-warning").get("warning")
        if warning:
            st.warning(f"**{warning['title']}** — {warning['text']}")

        if st.button("🥗 " + t("generatePlan"), type="primary"):
            with st.spinner(t("generatingPlan")):
                result = api.post("nutrition/plan")
            if "error" in result:
                st.error(result["error"])
            else:
                st.session_state.plan = result["plan"]
                st.session_state.tip_audio = {}
                st.rerun()

        if st.session_state.plan is None:
            restored = api.get("nutrition/plan")
            if "error" not in restored:
                st.session_state.plan = restored["plan"]

        plan = st.session_state.plan
        if not plan:
            return

        DeliveryModal.render()

        day_tabs = st.tabs([day["day"] for day in plan])
        for day_index, (tab, day) in enumerate(zip(day_tabs, plan)):
            with tab:
                PlanTab._render_day(day_index, day)

        PlanTab._render_export()

    @staticmethod
    def _render_day(day_index: int, day: dict) -> None:
        summary = day["daily_summary"]
        c1, c2, c3, c4 = st.columns(4)
        c1.metric("kcal", summary["calories"])
        c2.metric("Protein", f"{summary['protein']} g")
        c3.metric("Carbs", f"{summary['carbs']} g")
        c4.metric("Fats", f"{summary['fats']} g")

        for slot in MEAL_SLOTS:
            meal = day["meals"][slot]
            with st.container(border=True):
                st.markdown(
                    f"<div class='meal-slot'>{t(SLOT_LABEL_KEYS[slot])}</div>"
                    f"<strong>{meal['name']}</strong>",
                    unsafe_allow_html=True,
                )
                st.caption(meal["description"])
                col_details, col_order = st.columns(2)
                if col_details.button("📖 " + t("ingredients"), key=f"details_{day_index}_{slot}"):
                    PlanTab._show_details(day_index, slot)
                if col_order.button("🛵 " + t("orderDelivery"), key=f"order_{day_index}_{slot}"):
                    with st.spinner("📦"):
                        api.post("delivery/open", {"day_index": day_index, "slot": slot})
                    st.rerun()

        if day.get("nutritionist_tip"):
            st.markdown(f"<div class='tip-box'>💡 {day['nutritionist_tip']}</div>", unsafe_allow_html=True)
            PlanTab._render_tip_audio(day_index)

    @staticmethod
    def _show_details(day_index: int, slot: str) -> None:
        result = api.post("nutrition/meal-details", {"day_index": day_index, "slot": slot})
        if "error" in result:
            st.error(result["error"])
            return
        details = result["details"]
        with st.expander(details["name"], expanded=True):
            st.write(details["description"])
            if not details["details_available"]:
                st.caption(t("detailsUnavailable"))
                return
            st.markdown(f"**{t('ingredients')}**")
            for item in details["ingredients"]:
                st.markdown(f"- {item}")
            st.markdown(f"**{t('preparation')}**")
            for number, step in enumerate(details["preparation"], start=1):
                st.markdown(f"{number}. {step}")

    @staticmethod
    def _render_tip_audio(day_index: int) -> None:
        cached = st.session_state.tip_audio.get(day_index)
        if cached:
            st.audio(cached, format="audio/wav")
            return
        if st.button("🔊 " + t("listenToTip"), key=f"tip_{day_index}"):
            with st.spinner("🔊"):
                audio, error = api.post_audio("nutrition/tip/speech", {"day_index": day_index})
            if error:
                st.error(error)
            else:
                st.session_state.tip_audio[day_index] = audio
                st.rerun()

    @staticmethod
    def _render_export() -> None:
        result = api.get("nutrition/plan/export")
        if "error" in result:
            return
        df = pd.DataFrame(result["rows"])
        st.download_button(
            "📥 " + t("downloadReport"),
            data=df.to_csv(index=False).encode("utf-8"),
            file_name="optifuel_plan.csv",
            mime="text/csv",
        )


class DeliveryModal:
    """Delivery ordering panel, rendered from the API's flow snapshot."""

    @staticmethod
    def render() -> None:
        flow = api.get("delivery/state")
        step = flow.get("step", "closed")
        if step == "closed" or "error" in flow:
            return

        with st.container(border=True):
            col_title, col_close = st.columns([6, 1])
            col_title.markdown(f"### 🛵 {t('orderDelivery')}: {flow['meal']['name']}")
            if col_close.button("✖️", key="close_delivery"):
                api.post("delivery/close")
                st.rerun()

            if step == "list":
                DeliveryModal._list(flow)
            elif step == "compare":
                DeliveryModal._compare(flow)
            elif step == "confirm":
                DeliveryModal._confirm(flow)
            elif step == "payment":
                DeliveryModal._payment(flow)
            elif step == "success":
                st.success(f"✅ {t('orderPlaced')}")
                st.write(t("orderPlacedMessage", meal=flow["selected"]["meal_name"], partner=flow["selected"]["partner_name"]))
            else:
                st.info(t("processingPayment"))

    @staticmethod
    def _option_ref(option: dict) -> dict:
        return {"partner_name": option["partner_name"], "meal_name": option["meal_name"]}

    @staticmethod
    def _list(flow: dict) -> None:
        options: List[Dict[str, Any]] = flow.get("options", [])
        if not options:
            st.info(t("noDeliveryOptions"))
            return

        compare_mode = flow.get("compare_mode", False)
        toggle_label = t("exitCompareMode") if compare_mode else t("enableCompareMode")
        if st.button(toggle_label, key="toggle_compare"):
            api.post("delivery/compare-mode")
            st.rerun()

        selected_keys = {(o["partner_name"], o["meal_name"]) for o in flow.get("comparison_items", [])}
        for option in options:
            key = (option["partner_name"], option["meal_name"])
            cols = st.columns([4, 2, 2, 2])
            cols[0].markdown(f"**{option['partner_name']}** — {option['meal_name']}")
            cols[1].write(f"{option['currency']} {option['price']:.0f}")
            cols[2].write(f"⏱️ {option['delivery_time']} • ⭐ {option['rating']}")
            if compare_mode:
                checked = cols[3].checkbox("✓", value=key in selected_keys, key=f"cmp_{key}")
                if checked != (key in selected_keys):
                    api.post("delivery/compare-item", DeliveryModal._option_ref(option))
                    st.rerun()
            elif cols[3].button(t("orderNow"), key=f"sel_{key}"):
                api.post("delivery/select", DeliveryModal._option_ref(option))
                st.rerun()
            if option.get("special_offer"):
                st.caption(f"🎁 {option['special_offer']}")

        if compare_mode and len(selected_keys) >= 2:
            if st.button(f"{t('compareSelected')} ({len(selected_keys)})", type="primary"):
                api.post("delivery/compare")
                st.rerun()

    @staticmethod
    def _compare(flow: dict) -> None:
        st.markdown(f"**{t('comparisonTitle')}**")
        rows = []
        for row in flow.get("comparison", []):
            option = row["option"]
            badges = [
                label for flag, label in (
                    ("is_best_price", t("bestPrice")),
                    ("is_fastest", t("fastest")),
                    ("is_highest_rated", t("highestRated")),
                ) if row[flag]
            ]
            rows.append({
                "Partner": option["partner_name"],
                "Price": f"{option['currency']} {option['price']:.0f}",
                "Delivery": option["delivery_time"],
                "Rating": option["rating"],
                "": " · ".join(badges),
            })
        st.dataframe(pd.DataFrame(rows), hide_index=True, use_container_width=True)

        cols = st.columns(len(flow["comparison"]) + 1)
        for col, row in zip(cols, flow["comparison"]):
            option = row["option"]
            if col.button(f"{t('orderNow')}: {option['partner_name']}", key=f"cmp_sel_{option['partner_name']}"):
                api.post("delivery/select", DeliveryModal._option_ref(option))
                st.rerun()
        if cols[-1].button("← " + t("back"), key="compare_back"):
            api.post("delivery/back")
            st.rerun()

    @staticmethod
    def _confirm(flow: dict) -> None:
        selected = flow["selected"]
        st.markdown(f"**{t('confirmOrderTitle')}**")
        st.write(f"{selected['meal_name']} • {selected['partner_name']} • {selected['currency']} {selected['price']:.0f}")
        col_back, col_confirm = st.columns(2)
        if col_back.button("← " + t("back"), key="confirm_back"):
            api.post("delivery/back")
            st.rerun()
        if col_confirm.button(t("confirmPurchase"), type="primary"):
            api.post("delivery/confirm")
            st.rerun()

    @staticmethod
    def _payment(flow: dict) -> None:
        selected = flow["selected"]
        phone = st.text_input(
            t("initiatePayment"),
            value=flow.get("phone_number", ""),
            placeholder=t("safaricomNumberPlaceholder"),
        )
        if flow.get("payment_error"):
            st.error(flow["payment_error"])
        col_back, col_pay = st.columns(2)
        if col_back.button("← " + t("back"), key="payment_back"):
            api.post("delivery/back")
            st.rerun()
        if col_pay.button(f"{t('payAmount')} {selected['currency']} {selected['price']:.0f}", type="primary"):
            with st.spinner(t("processingPayment")):
                api.post("delivery/pay", {"phone_number": phone})
            st.rerun()


class EventTab:
    """Race-day guidance; the personalized planner is Premium only."""

    @staticmethod
    def render(profile: dict) -> None:
        result = api.get("events/recommendations")
        if "error" not in result:
            for category in result["categories"]:
                with st.expander(category["category"]):
                    for item in category["recommendations"]:
                        st.markdown(f"**{item['title']}** — {item['advice']}")

        st.markdown("---")
        if profile.get("subscription") != "Premium":
            st.info(t("premiumRequired"))
            return

        with st.form("event_form"):
            event_name = st.text_input(t("eventName"))
            event_date = st.date_input(t("eventDate"))
            use_location = st.checkbox(t("useMyLocation"))
            col_lat, col_lon = st.columns(2)
            latitude = col_lat.number_input("Latitude", value=-1.2921, format="%.4f")
            longitude = col_lon.number_input("Longitude", value=36.8219, format="%.4f")
            submitted = st.form_submit_button(t("getRecommendations"), type="primary")

        if submitted and event_name:
            payload = {"event_name": event_name, "event_date": event_date.isoformat()}
            if use_location:
                payload.update({"latitude": latitude, "longitude": longitude})
            with st.spinner(t("gettingLocation") if use_location else "📅"):
                st.session_state.event_result = api.post("events/recommendations", payload)

        data = st.session_state.event_result
        if not data:
            return
        if "error" in data:
            st.error(data["error"])
            return
        st.markdown(data["text"])
        if data.get("grounding_chunks"):
            st.markdown(f"**{t('nearbyPlaces')}**")
            for chunk in data["grounding_chunks"]:
                st.markdown(f"- [{chunk['title']}]({chunk['uri']})")


class ChatTab:
    """Chat with the NutriAthlete assistant."""

    @staticmethod
    def render() -> None:
        history = api.get("chat/history").get("messages", [])

        with st.chat_message("assistant"):
            st.markdown(t("assistantGreeting"))
        for message in history:
            with st.chat_message("user" if message["role"] == "user" else "assistant"):
                st.markdown(message["text"])

        if prompt := st.chat_input(t("askMeAnything")):
            with st.spinner("🤔"):
                result = api.post("chat/ask", {"message": prompt})
            if "error" in result:
                st.error(result["error"])
            else:
                st.rerun()


# ========================================
# MAIN APPLICATION
# ========================================
def main():
    """Main application entry point."""
    load_styles()
    init_session_state()

    is_online, _ = api.check_health()
    if not is_online:
        st.error("🔴 API Offline")
        st.caption(f"Trying: {API_BASE}")
        st.code("Ensure python api/app.py is running")
        return

    dashboard = api.get("dashboard")
    if "error" in dashboard:
        st.error(dashboard["error"])
        return

    st.session_state.language = dashboard.get("language", st.session_state.language)
    profile = dashboard.get("profile")
    if not profile:
        ProfileForm.render()
        return

    HeaderSection.render(profile)
    SidebarSection.render(profile)

    tab_plan, tab_event, tab_chat = st.tabs([
        "🥗 " + t("nutritionPlan"),
        "📅 " + t("eventPlanner"),
        "💬 " + t("aiAssistant"),
    ])

    with tab_plan:
        PlanTab.render()

    with tab_event:
        EventTab.render(profile)

    with tab_chat:
        ChatTab.render()


if __name__ == "__main__":
    main()
