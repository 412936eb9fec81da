"""Localized user-facing messages for errors and notices raised by the client core."""

from __future__ import annotations

from typing import Dict, Literal, get_args

Language = Literal["en", "hi", "or"]
SUPPORTED_LANGUAGES = frozenset(get_args(Language))
FALLBACK_LANGUAGE: Language = "en"

MESSAGES: Dict[str, Dict[str, str]] = {
    # sign-in outcomes
    "invalidCredentials": {
        "en": "Invalid username or password.",
        "hi": "गलत उपयोगकर्ता नाम या पासवर्ड।",
        "or": "ଭୁଲ ଉପଯୋଗକାରୀ ନାମ କିମ୍ବା ପାସୱାର୍ଡ଼।",
    },
    "authUnavailable": {
        "en": "Unable to connect to server. Please check your connection or try a demo account.",
        "hi": "सर्वर से कनेक्ट नहीं हो सका। कृपया अपना कनेक्शन जांचें या डेमो खाता आज़माएं।",
        "or": "ସର୍ଭର ସହିତ ସଂଯୋଗ ହୋଇପାରିଲା ନାହିଁ। ଦୟାକରି ଆପଣଙ୍କ ସଂଯୋଗ ଯାଞ୍ଚ କରନ୍ତୁ କିମ୍ବା ଡେମୋ ଖାତା ଚେଷ୍ଟା କରନ୍ତୁ।",
    },
    "networkUnreachable": {
        "en": "Network error. Please check your connection and try again.",
        "hi": "नेटवर्क त्रुटि। कृपया अपना कनेक्शन जांचें और पुनः प्रयास करें।",
        "or": "ନେଟୱାର୍କ ତ୍ରୁଟି। ଦୟାକରି ଆପଣଙ୍କ ସଂଯୋଗ ଯାଞ୍ଚ କରନ୍ତୁ ଏବଂ ପୁନର୍ବାର ଚେଷ୍ଟା କରନ୍ତୁ।",
    },
    "loginInFlight": {
        "en": "Signing in, please wait.",
        "hi": "साइन इन हो रहा है, कृपया प्रतीक्षा करें।",
        "or": "ସାଇନ୍ ଇନ୍ ହେଉଛି, ଦୟାକରି ଅପେକ୍ଷା କରନ୍ତୁ।",
    },
    "loginCancelled": {
        "en": "Sign-in was cancelled.",
        "hi": "साइन इन रद्द कर दिया गया।",
        "or": "ସାଇନ୍ ଇନ୍ ବାତିଲ କରାଗଲା।",
    },
    # registration outcomes
    "registrationRejected": {
        "en": "Registration failed. Please try again.",
        "hi": "पंजीकरण विफल। कृपया पुनः प्रयास करें।",
        "or": "ପଞ୍ଜୀକରଣ ବିଫଳ। ଦୟାକରି ପୁନର୍ବାର ଚେଷ୍ଟା କରନ୍ତୁ।",
    },
    "verificationSent": {
        "en": "Registration successful! Please check {email} to verify your account before logging in.",
        "hi": "पंजीकरण सफल! लॉगिन करने से पहले अपना खाता सत्यापित करने के लिए {email} जांचें।",
        "or": "ପଞ୍ଜୀକରଣ ସଫଳ! ଲଗଇନ୍ ପୂର୍ବରୁ ଆପଣଙ୍କ ଖାତା ଯାଞ୍ଚ ପାଇଁ {email} ଦେଖନ୍ତୁ।",
    },
    # form validation
    "formInvalid": {
        "en": "Please correct the highlighted fields.",
        "hi": "कृपया चिह्नित फ़ील्ड ठीक करें।",
        "or": "ଦୟାକରି ଚିହ୍ନିତ ଘରଗୁଡ଼ିକ ସଂଶୋଧନ କରନ୍ତୁ।",
    },
    "nameRequired": {"en": "Name is required", "hi": "नाम आवश्यक है", "or": "ନାମ ଆବଶ୍ୟକ"},
    "nameTooShort": {
        "en": "Name must be at least 2 characters",
        "hi": "नाम कम से कम 2 अक्षरों का होना चाहिए",
        "or": "ନାମ ଅତି କମରେ 2 ଅକ୍ଷର ହେବା ଆବଶ୍ୟକ",
    },
    "usernameRequired": {
        "en": "Username or email is required",
        "hi": "उपयोगकर्ता नाम या ईमेल आवश्यक है",
        "or": "ଉପଯୋଗକାରୀ ନାମ କିମ୍ବା ଇମେଲ୍ ଆବଶ୍ୟକ",
    },
    "signupUsernameRequired": {
        "en": "Username is required",
        "hi": "उपयोगकर्ता नाम आवश्यक है",
        "or": "ଉପଯୋଗକାରୀ ନାମ ଆବଶ୍ୟକ",
    },
    "usernameTooShort": {
        "en": "Username must be at least 3 characters",
        "hi": "उपयोगकर्ता नाम कम से कम 3 अक्षरों का होना चाहिए",
        "or": "ଉପଯୋଗକାରୀ ନାମ ଅତି କମରେ 3 ଅକ୍ଷର ହେବା ଆବଶ୍ୟକ",
    },
    "usernameInvalid": {
        "en": "Username can only contain letters, numbers, and underscores",
        "hi": "उपयोगकर्ता नाम में केवल अक्षर, संख्याएँ और अंडरस्कोर हो सकते हैं",
        "or": "ଉପଯୋଗକାରୀ ନାମରେ କେବଳ ଅକ୍ଷର, ସଂଖ୍ୟା ଏବଂ ଅଣ୍ଡରସ୍କୋର ରହିପାରିବ",
    },
    "gradeRequired": {
        "en": "Please select your grade",
        "hi": "कृपया अपनी कक्षा चुनें",
        "or": "ଦୟାକରି ଆପଣଙ୍କ ଶ୍ରେଣୀ ବାଛନ୍ତୁ",
    },
    "teacherCodeRequired": {
        "en": "Teacher code is required",
        "hi": "शिक्षक कोड आवश्यक है",
        "or": "ଶିକ୍ଷକ କୋଡ୍ ଆବଶ୍ୟକ",
    },
    "emailRequired": {"en": "Email is required", "hi": "ईमेल आवश्यक है", "or": "ଇମେଲ୍ ଆବଶ୍ୟକ"},
    "emailInvalid": {
        "en": "Please enter a valid email address",
        "hi": "कृपया एक मान्य ईमेल पता दर्ज करें",
        "or": "ଦୟାକରି ଏକ ବୈଧ ଇମେଲ୍ ଠିକଣା ଲେଖନ୍ତୁ",
    },
    "passwordRequired": {"en": "Password is required", "hi": "पासवर्ड आवश्यक है", "or": "ପାସୱାର୍ଡ଼ ଆବଶ୍ୟକ"},
    "passwordWeak": {
        "en": "Password must have: {requirements}",
        "hi": "पासवर्ड में होना चाहिए: {requirements}",
        "or": "ପାସୱାର୍ଡ଼ରେ ରହିବା ଆବଶ୍ୟକ: {requirements}",
    },
    "reqLength": {"en": "8+ characters", "hi": "8+ अक्षर", "or": "8+ ଅକ୍ଷର"},
    "reqUppercase": {"en": "uppercase letter", "hi": "बड़ा अक्षर", "or": "ବଡ଼ ଅକ୍ଷର"},
    "reqLowercase": {"en": "lowercase letter", "hi": "छोटा अक्षर", "or": "ଛୋଟ ଅକ୍ଷର"},
    "reqNumber": {"en": "number", "hi": "संख्या", "or": "ସଂଖ୍ୟା"},
    "confirmPasswordRequired": {
        "en": "Please confirm your password",
        "hi": "कृपया अपने पासवर्ड की पुष्टि करें",
        "or": "ଦୟାକରି ଆପଣଙ୍କ ପାସୱାର୍ଡ଼ ନିଶ୍ଚିତ କରନ୍ତୁ",
    },
    "passwordMismatch": {
        "en": "Passwords do not match",
        "hi": "पासवर्ड मेल नहीं खाते",
        "or": "ପାସୱାର୍ଡ଼ ମେଳ ଖାଉନାହିଁ",
    },
    "termsRequired": {
        "en": "Please accept the terms and conditions",
        "hi": "कृपया नियम और शर्तों को स्वीकार करें",
        "or": "ଦୟାକରି ନିୟମ ଏବଂ ସର୍ତ୍ତାବଳୀ ଗ୍ରହଣ କରନ୍ତୁ",
    },
    # navigation and storage
    "illegalTransition": {
        "en": "That step is not available right now.",
        "hi": "यह चरण अभी उपलब्ध नहीं है।",
        "or": "ଏହି ପଦକ୍ଷେପ ବର୍ତ୍ତମାନ ଉପଲବ୍ଧ ନାହିଁ।",
    },
    "notSignedIn": {
        "en": "Please sign in first.",
        "hi": "कृपया पहले साइन इन करें।",
        "or": "ଦୟାକରି ପ୍ରଥମେ ସାଇନ୍ ଇନ୍ କରନ୍ତୁ।",
    },
    "storageError": {
        "en": "Saved data could not be read.",
        "hi": "सहेजा गया डेटा पढ़ा नहीं जा सका।",
        "or": "ସଞ୍ଚିତ ତଥ୍ୟ ପଢ଼ିହେଲା ନାହିଁ।",
    },
    "genericError": {
        "en": "Something went wrong. Please try again.",
        "hi": "कुछ गलत हो गया। कृपया पुनः प्रयास करें।",
        "or": "କିଛି ଭୁଲ ହେଲା। ଦୟାକରି ପୁନର୍ବାର ଚେଷ୍ଟା କରନ୍ତୁ।",
    },
}


def normalize_language(value: object) -> Language | None:
    if isinstance(value, str) and value in SUPPORTED_LANGUAGES:
        return value  # type: ignore[return-value]
    return None


def translate(key: str, language: str, **params: object) -> str:
    """Look up ``key`` for ``language``, falling back to English and then the key itself."""
    entry = MESSAGES.get(key)
    if entry is None:
        text = key
    else:
        text = entry.get(language) or entry.get(FALLBACK_LANGUAGE) or key
    for name, value in params.items():
        text = text.replace(f"{{{name}}}", str(value))
    return text


__all__ = [
    "FALLBACK_LANGUAGE",
    "Language",
    "MESSAGES",
    "SUPPORTED_LANGUAGES",
    "normalize_language",
    "translate",
]
