"""
OptiFuel — Localization
=======================
Key → string tables for the supported UI languages.
"""

from typing import Dict

SUPPORTED_LANGUAGES = ["en", "sw"]
DEFAULT_LANGUAGE = "en"

TRANSLATIONS: Dict[str, Dict[str, str]] = {
    "en": {
        # General
        "appName": "OptiFuel",
        "genericError": "Sorry, something went wrong. Please try again.",
        "genericAssistantError": "Sorry, I encountered an error. Please try again.",
        "rateLimitError": "The service is busy right now. Please try again in a moment.",
        "planError": "We couldn't load your nutrition plan. Please try again.",
        "premiumRequired": "This feature is available on the Premium plan.",
        "profileRequired": "Please complete your profile first.",

        # Profile form
        "personalInfo": "Personal Information",
        "bodyMetrics": "Body Metrics",
        "sportAndDiet": "Sport & Diet",
        "selectGender": "Select gender",
        "selectSport": "Select sport",
        "createPlan": "Create My Plan",
        "fillAllFields": "Please fill all fields before submitting.",
        "name": "Name",
        "age": "Age",
        "gender": "Gender",
        "geographicalArea": "Geographical Area",
        "height": "Height (cm)",
        "weight": "Weight (kg)",
        "sport": "Sport",
        "diet": "Diet",
        "allergies": "Allergies",
        "otherAllergy": "Other allergy",
        "next": "Next",
        "back": "Back",

        # Dashboard
        "welcomeBack": "Welcome, {name}!",
        "nutritionPlan": "Nutrition Plan",
        "eventPlanner": "Event Planner",
        "aiAssistant": "AI Assistant",
        "notifications": "Notifications",
        "markAllRead": "Mark all as read",
        "noNotifications": "No notifications yet.",

        # Nutrition plan
        "breakfast": "Breakfast",
        "midMorningSnack": "Mid-Morning Snack",
        "lunch": "Lunch",
        "afternoonSnack": "Afternoon Snack",
        "dinner": "Dinner",
        "dailySummary": "Daily Summary",
        "nutritionistTip": "Nutritionist's Tip",
        "listenToTip": "Listen to Tip",
        "downloadReport": "Download Report",
        "readMore": "Read more",
        "ingredients": "Ingredients",
        "preparation": "Preparation",
        "detailsUnavailable": "Details for this meal are not available.",
        "allergyWarningTitle": "Allergy Alert",
        "allergyWarningText": "Your plan may contain ingredients you are allergic to: {allergies}. Always check before eating.",
        "planReady": "Your nutrition plan is ready.",
        "generatePlan": "Generate My Plan",
        "generatingPlan": "Building your nutrition plan...",

        # Delivery
        "orderDelivery": "Order Delivery",
        "compareAndOrder": "Compare & Order",
        "comparisonTitle": "Compare Options",
        "confirmOrderTitle": "Confirm Your Order",
        "initiatePayment": "Pay with M-PESA",
        "processingPayment": "Processing Payment...",
        "orderPlaced": "Order Placed!",
        "orderPlacedMessage": "Your {meal} from {partner} is on its way.",
        "enableCompareMode": "Compare",
        "exitCompareMode": "Exit Compare",
        "compareSelected": "Compare Selected",
        "orderNow": "Order Now",
        "confirmPurchase": "Confirm Purchase",
        "payAmount": "Pay",
        "bestPrice": "Best Price",
        "fastest": "Fastest",
        "highestRated": "Highest Rated",
        "noDeliveryOptions": "No delivery options are available for this meal in your area.",
        "safaricomNumberPlaceholder": "e.g. 254712345678",
        "invalidPhoneNumber": "Please enter a valid Safaricom number starting with 254 (e.g. 254712345678).",
        "paymentFailed": "Payment failed. Please check your number and try again.",

        # Upgrade
        "upgradeNow": "Upgrade to Premium",
        "upgradeAmount": "KES 999 / month",
        "finalConfirmationTitle": "Confirm Payment",
        "finalConfirmationMessageUpgrade": "You are about to pay {amount} to OptiFuel from {phoneNumber}.",
        "enterPin": "Enter your M-PESA PIN",
        "invalidPin": "Your PIN must be 4 digits.",
        "upgradeSuccessTitle": "Welcome to Premium!",
        "upgradeSuccessNotification": "Your account has been upgraded to Premium.",

        # Events
        "eventName": "Event Name",
        "eventDate": "Event Date",
        "getRecommendations": "Get Recommendations",
        "gettingLocation": "Getting your location...",
        "locationPermission": "Location unavailable. Recommendations will not include nearby places.",
        "useMyLocation": "Include nearby places",
        "nearbyPlaces": "Nearby Places",

        # Assistant
        "askMeAnything": "Ask me anything about sports nutrition...",
        "sendMessage": "Send",
        "assistantGreeting": "Hi! How can I help with your nutrition today?",

        # Hydration
        "hydrationTracker": "Hydration Tracker",
        "hydrationGoalReached": "Daily hydration goal reached!",
        "reset": "Reset",
    },
    "sw": {
        "appName": "OptiFuel",
        "genericError": "Samahani, kuna hitilafu. Tafadhali jaribu tena.",
        "genericAssistantError": "Samahani, nimekutana na hitilafu. Tafadhali jaribu tena.",
        "rateLimitError": "Huduma ina shughuli nyingi sasa. Tafadhali jaribu tena baadaye kidogo.",
        "planError": "Hatukuweza kupakia mpango wako wa lishe. Tafadhali jaribu tena.",
        "premiumRequired": "Huduma hii inapatikana kwenye mpango wa Premium.",
        "profileRequired": "Tafadhali kamilisha wasifu wako kwanza.",

        "personalInfo": "Taarifa Binafsi",
        "bodyMetrics": "Vipimo vya Mwili",
        "sportAndDiet": "Mchezo na Lishe",
        "selectGender": "Chagua jinsia",
        "selectSport": "Chagua mchezo",
        "createPlan": "Tengeneza Mpango Wangu",
        "fillAllFields": "Tafadhali jaza sehemu zote kabla ya kuwasilisha.",
        "name": "Jina",
        "age": "Umri",
        "gender": "Jinsia",
        "geographicalArea": "Eneo",
        "height": "Urefu (cm)",
        "weight": "Uzito (kg)",
        "sport": "Mchezo",
        "diet": "Lishe",
        "allergies": "Mzio",
        "otherAllergy": "Mzio mwingine",
        "next": "Endelea",
        "back": "Rudi",

        "welcomeBack": "Karibu, {name}!",
        "nutritionPlan": "Mpango wa Lishe",
        "eventPlanner": "Mpangaji wa Tukio",
        "aiAssistant": "Msaidizi wa AI",
        "notifications": "Arifa",
        "markAllRead": "Weka zote kama zimesomwa",
        "noNotifications": "Hakuna arifa bado.",

        "breakfast": "Kiamsha Kinywa",
        "midMorningSnack": "Kitafunio cha Asubuhi",
        "lunch": "Chakula cha Mchana",
        "afternoonSnack": "Kitafunio cha Alasiri",
        "dinner": "Chakula cha Jioni",
        "dailySummary": "Muhtasari wa Siku",
        "nutritionistTip": "Ushauri wa Mtaalamu wa Lishe",
        "listenToTip": "Sikiliza Ushauri",
        "downloadReport": "Pakua Ripoti",
        "readMore": "Soma zaidi",
        "ingredients": "Viungo",
        "preparation": "Maandalizi",
        "detailsUnavailable": "Maelezo ya mlo huu hayapatikani.",
        "allergyWarningTitle": "Tahadhari ya Mzio",
        "allergyWarningText": "Mpango wako unaweza kuwa na viungo unavyovipata mzio: {allergies}. Hakikisha kabla ya kula.",
        "planReady": "Mpango wako wa lishe uko tayari.",
        "generatePlan": "Tengeneza Mpango Wangu",
        "generatingPlan": "Tunaandaa mpango wako wa lishe...",

        "orderDelivery": "Agiza Usafirishaji",
        "compareAndOrder": "Linganisha na Agiza",
        "comparisonTitle": "Linganisha Chaguo",
        "confirmOrderTitle": "Thibitisha Agizo Lako",
        "initiatePayment": "Lipa kwa M-PESA",
        "processingPayment": "Malipo Yanashughulikiwa...",
        "orderPlaced": "Agizo Limewekwa!",
        "orderPlacedMessage": "{meal} yako kutoka {partner} iko njiani.",
        "enableCompareMode": "Linganisha",
        "exitCompareMode": "Ondoka Kulinganisha",
        "compareSelected": "Linganisha Vilivyochaguliwa",
        "orderNow": "Agiza Sasa",
        "confirmPurchase": "Thibitisha Ununuzi",
        "payAmount": "Lipa",
        "bestPrice": "Bei Nafuu",
        "fastest": "Haraka Zaidi",
        "highestRated": "Imekadiriwa Juu",
        "noDeliveryOptions": "Hakuna chaguo za usafirishaji kwa mlo huu katika eneo lako.",
        "safaricomNumberPlaceholder": "mfano 254712345678",
        "invalidPhoneNumber": "Tafadhali weka nambari sahihi ya Safaricom inayoanza na 254 (mfano 254712345678).",
        "paymentFailed": "Malipo yameshindikana. Tafadhali kagua nambari yako na ujaribu tena.",

        "upgradeNow": "Pandisha hadi Premium",
        "upgradeAmount": "KES 999 / mwezi",
        "finalConfirmationTitle": "Thibitisha Malipo",
        "finalConfirmationMessageUpgrade": "Unakaribia kulipa {amount} kwa OptiFuel kutoka {phoneNumber}.",
        "enterPin": "Weka PIN yako ya M-PESA",
        "invalidPin": "PIN yako lazima iwe na tarakimu 4.",
        "upgradeSuccessTitle": "Karibu Premium!",
        "upgradeSuccessNotification": "Akaunti yako imepandishwa hadi Premium.",

        "eventName": "Jina la Tukio",
        "eventDate": "Tarehe ya Tukio",
        "getRecommendations": "Pata Mapendekezo",
        "gettingLocation": "Tunatafuta eneo lako...",
        "locationPermission": "Eneo halipatikani. Mapendekezo hayatajumuisha maeneo ya karibu.",
        "useMyLocation": "Jumuisha maeneo ya karibu",
        "nearbyPlaces": "Maeneo ya Karibu",

        "askMeAnything": "Niulize chochote kuhusu lishe ya michezo...",
        "sendMessage": "Tuma",
        "assistantGreeting": "Habari! Nikusaidie vipi na lishe yako leo?",

        "hydrationTracker": "Kifuatiliaji cha Maji",
        "hydrationGoalReached": "Umefikia lengo la maji la siku!",
        "reset": "Anza Upya",
    },
}


def translate(key: str, language: str = DEFAULT_LANGUAGE, **params) -> str:
    """
    Look up a UI string.

    Falls back to English when the active language lacks the key, and to the
    key itself when English lacks it too. Keyword arguments fill `{name}`
    placeholders.
    """
    table = TRANSLATIONS.get(language, {})
    text = table.get(key) or TRANSLATIONS[DEFAULT_LANGUAGE].get(key) or key

    for name, value in params.items():
        text = text.replace("{" + name + "}", str(value))
    return text


def is_supported_language(language: str) -> bool:
    return language in SUPPORTED_LANGUAGES


__all__ = [
    "SUPPORTED_LANGUAGES",
    "DEFAULT_LANGUAGE",
    "TRANSLATIONS",
    "translate",
    "is_supported_language",
]
