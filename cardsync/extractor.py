import re
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Any

logger = logging.getLogger(__name__)


# =========================
# DATA MODEL
# =========================

# Semantic keys, in the order columns are created on a sheet
FIELD_KEYS = (
    "name",
    "email",
    "phone",
    "linkedin",
    "company",
    "jobTitle",
    "website",
    "address",
)

_KEY_TO_ATTR = {
    "name": "name",
    "email": "email",
    "phone": "phone",
    "linkedin": "linkedin",
    "company": "company",
    "jobTitle": "job_title",
    "website": "website",
    "address": "address",
}


@dataclass(frozen=True)
class ContactRecord:
    name: str = ""
    email: str = ""
    phone: str = ""
    linkedin: str = ""
    company: str = ""
    job_title: str = ""
    website: str = ""
    address: str = ""
    raw_text: str = ""
    ocr_method: Optional[str] = None

    def get(self, key: str) -> str:
        """Return the value stored under a semantic key (e.g. ``jobTitle``)."""
        return getattr(self, _KEY_TO_ATTR[key]) or ""

    def to_dict(self) -> Dict[str, Any]:
        data = {key: self.get(key) for key in FIELD_KEYS}
        data["rawText"] = self.raw_text or ""
        data["ocrMethod"] = self.ocr_method
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ContactRecord":
        """Build a record from a JSON payload.

        Accepts the semantic keys (``jobTitle``, ``rawText``, ``ocrMethod``)
        as well as their snake_case attribute names. Missing or null values
        become empty strings.
        """
        values = {}
        for key, attr in _KEY_TO_ATTR.items():
            value = data.get(key, data.get(attr))
            values[attr] = str(value).strip() if value is not None else ""
        raw_text = data.get("rawText", data.get("raw_text"))
        values["raw_text"] = raw_text or ""
        values["ocr_method"] = data.get("ocrMethod", data.get("ocr_method"))
        return cls(**values)

    def is_empty(self) -> bool:
        return not any(self.get(key) for key in FIELD_KEYS)


# =========================
# EXTRACTOR
# =========================

# Business-entity words that disqualify a line from being a person's name
NAME_EXCLUDE_KEYWORDS = [
    "inc", "ltd", "llc", "corp", "company", "co", "group",
    "technologies", "solutions", "systems", "services",
]

COMPANY_KEYWORDS = NAME_EXCLUDE_KEYWORDS + [
    "corporation", "tech", "consulting", "associates",
    "partners", "ventures", "capital",
]

TITLE_KEYWORDS = [
    "ceo", "cto", "cfo", "coo", "cmo", "president", "vice president",
    "chairman", "executive", "officer", "chief", "director", "manager",
    "engineer", "developer", "designer", "consultant", "founder", "owner",
    "vp", "head of", "lead", "senior", "principal", "architect", "analyst",
    "specialist", "coordinator", "administrator", "advisor", "attorney",
    "agent", "partner",
]

WEBSITE_TLDS = [
    "com", "org", "net", "edu", "gov", "io", "co", "ai", "app", "dev",
    "biz", "info", "tech", "me", "tv", "us", "uk", "ca", "au", "de",
    "fr", "in", "nl", "es", "it", "jp", "cn", "br", "ch", "se", "nz",
    "sg", "ie", "eu",
]

WEBSITE_EXCLUDE = [
    "@", "linkedin", "facebook", "twitter", "instagram", "github",
    "gmail", "yahoo", "outlook",
]


def _word_pattern(words: List[str]) -> "re.Pattern":
    alternatives = "|".join(re.escape(w) for w in sorted(words, key=len, reverse=True))
    return re.compile(rf"\b(?:{alternatives})\b", re.IGNORECASE)


class FieldExtractor:
    """Rule-based extractor turning recognized card text into a ContactRecord.

    Email, phone, LinkedIn, website and address are matched against the
    whole text. Name, company and job title are picked from the card lines
    left over once those values have been removed. The first candidate in
    document order wins for every field.
    """

    def __init__(self):
        tlds = "|".join(sorted(WEBSITE_TLDS, key=len, reverse=True))
        self.patterns = {
            "email": re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}"),
            # Optional +CC, optional (area), then 2-4 digit groups; never spans lines
            "phone": re.compile(
                r"(?:\+\d{1,3}[ .-]?)?(?:\(\d{1,4}\)[ .-]?)?\d{2,4}(?:[ .-]?\d{2,4}){1,4}"
            ),
            # A bare handle must not be the @ of an email address
            "linkedin": re.compile(
                r"(?:linkedin\.com/(?:in|pub|profile)/|(?<![A-Za-z0-9._%+-])@)([A-Za-z0-9_-]+)",
                re.IGNORECASE,
            ),
            "website": re.compile(
                rf"(?<![@\w.-])(?:https?://)?(?:www\.)?[A-Za-z0-9-]+(?:\.[A-Za-z0-9-]+)*"
                rf"\.(?:{tlds})\b(?!@)(?:/[^\s]*)?",
                re.IGNORECASE,
            ),
        }
        # Comma runs start on a non-space character and stay on one line
        self.address_patterns = [
            # Street suffix, optional unit, city, STATE ZIP
            re.compile(
                r"\d+[ \t]+[A-Za-z0-9 \t.]+?\b"
                r"(?:Street|St|Avenue|Ave|Road|Rd|Drive|Dr|Lane|Ln|Boulevard|Blvd|"
                r"Way|Court|Ct|Place|Pl|Parkway|Pkwy|Highway|Hwy|Suite|Ste)\b\.?"
                r"(?:,?[ \t]*(?:Suite|Ste\.?|Unit|Apt\.?|#)[ \t]*[\w-]+)?"
                r"[\s,]+[A-Za-z][A-Za-z \t]*,[ \t]*[A-Z]{2}[ \t]+\d{5}(?:-\d{4})?"
            ),
            # Any comma separated run ending in STATE ZIP
            re.compile(
                r"\d+[ \t]+[A-Za-z0-9.#'-][A-Za-z0-9 \t.#'-]*"
                r"(?:,[ \t]*[A-Za-z0-9.#'-][A-Za-z0-9 \t.#'-]*)*?"
                r",[ \t]*[A-Za-z.][A-Za-z \t.]*,[ \t]*[A-Z]{2}[ \t]+\d{5}(?:-\d{4})?"
            ),
            # Same, tolerant of lowercase state and missing comma before it
            re.compile(
                r"\d+[ \t]+[a-z0-9.#'-][a-z0-9 \t.#'-]*"
                r"(?:,[ \t]*[a-z0-9.#'-][a-z0-9 \t.#'-]*)*?"
                r",[ \t]*[a-z.][a-z \t.]*,?[ \t]*[a-z]{2}[ \t]+\d{5}(?:-\d{4})?",
                re.IGNORECASE,
            ),
        ]
        self.name_exclude = _word_pattern(NAME_EXCLUDE_KEYWORDS)
        self.company_keywords = _word_pattern(COMPANY_KEYWORDS)
        self.title_word = re.compile(r"[A-Z][a-z]+")
        self.company_caps = re.compile(r"^[A-Z0-9&,.' -]{3,60}$")

    # =========================
    # PUBLIC API
    # =========================

    def extract(self, text: str, ocr_method: Optional[str] = None) -> ContactRecord:
        text = text or ""
        lines = [l.strip() for l in text.split("\n") if l.strip()]
        logger.debug(f"Extracting contact fields from {len(lines)} lines")

        email = self._extract_email(text)
        phone, phone_source = self._extract_phone(text)
        linkedin, linkedin_source = self._extract_linkedin(text)
        website, website_source = self._extract_website(text)

        removals = [
            email,
            phone_source, re.sub(r"\D", "", phone), phone,
            linkedin_source, linkedin,
            website_source, website,
        ]
        clean_lines = self._clean_lines(lines, [r for r in removals if r])

        name = self._extract_name(clean_lines)
        company = self._extract_company(clean_lines, name)
        job_title = self._extract_title(clean_lines, name, company)
        address = self._extract_address(text)

        record = ContactRecord(
            name=_normalize(name),
            email=_normalize(email),
            phone=_normalize(phone),
            linkedin=_normalize(linkedin),
            company=_normalize(company),
            job_title=_normalize(job_title),
            website=_normalize(website),
            address=_normalize(address),
            raw_text=text,
            ocr_method=ocr_method,
        )

        logger.debug(
            f"Extracted - Name: {record.name or 'None'}, "
            f"Email: {record.email or 'None'}, Company: {record.company or 'None'}"
        )
        return record

    # =========================
    # PATTERN FIELDS
    # =========================

    def _extract_email(self, text: str) -> str:
        m = self.patterns["email"].search(text)
        return m.group(0) if m else ""

    def _extract_phone(self, text: str):
        """Return (formatted phone, matched source text)."""
        for m in self.patterns["phone"].finditer(text):
            digits = re.sub(r"\D", "", m.group(0))
            if 7 <= len(digits) <= 15:
                return format_phone(digits), m.group(0)
        return "", ""

    def _extract_linkedin(self, text: str):
        """Return (profile URL, matched source text)."""
        m = self.patterns["linkedin"].search(text)
        if not m:
            return "", ""
        source = m.group(0)
        if source.lower().startswith("linkedin.com"):
            return f"https://www.{source}", source
        return f"https://www.linkedin.com/in/{m.group(1)}", source

    def _extract_website(self, text: str):
        """Return (website URL, matched source text)."""
        for m in self.patterns["website"].finditer(text):
            candidate = m.group(0)
            lower = candidate.lower()
            if any(blocked in lower for blocked in WEBSITE_EXCLUDE):
                continue
            if lower.startswith(("http://", "https://")):
                return candidate, candidate
            return f"https://{candidate}", candidate
        return "", ""

    def _extract_address(self, text: str) -> str:
        for pattern in self.address_patterns:
            m = pattern.search(text)
            if m:
                return m.group(0)
        return ""

    # =========================
    # LINE HEURISTICS
    # =========================

    def _clean_lines(self, lines: List[str], removals: List[str]) -> List[str]:
        cleaned = []
        for line in lines:
            for value in removals:
                line = line.replace(value, "")
            line = line.strip()
            if line and re.search(r"[A-Za-z]", line):
                cleaned.append(line)
        return cleaned

    def _looks_like_name(self, line: str) -> bool:
        words = line.split()
        if not 2 <= len(words) <= 4:
            return False
        if self.name_exclude.search(line):
            return False
        return any(self.title_word.match(w) for w in words) or not line.isupper()

    def _extract_name(self, lines: List[str]) -> str:
        name = next((l for l in lines if self._looks_like_name(l)), None)
        if name is None:
            name = next(
                (l for l in lines if 3 < len(l) < 50 and re.search(r"[A-Za-z]", l)),
                "",
            )
        return name if 2 < len(name) < 60 else ""

    def _extract_company(self, lines: List[str], name: str) -> str:
        candidates = [l for l in lines if l != name]
        for line in candidates:
            if self.company_keywords.search(line):
                return line
        for line in candidates:
            if self.company_caps.match(line) and re.search(r"[A-Z]", line):
                return line
        return ""

    def _extract_title(self, lines: List[str], name: str, company: str) -> str:
        for line in lines:
            if line in (name, company) or len(line) >= 50:
                continue
            lower = line.lower()
            if any(keyword in lower for keyword in TITLE_KEYWORDS):
                return line
        return ""


def format_phone(digits: str) -> str:
    """Format a digit-only phone number in North American style when possible."""
    if len(digits) == 10:
        return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"
    if len(digits) == 11 and digits.startswith("1"):
        return f"+1 ({digits[1:4]}) {digits[4:7]}-{digits[7:]}"
    return digits


def _normalize(value: str) -> str:
    return " ".join((value or "").split())


_default_extractor = FieldExtractor()


def extract_card_data(text: str, ocr_method: Optional[str] = None) -> ContactRecord:
    """Extract a ContactRecord from recognized business card text.

    Args:
        text: Raw text recognized on the card
        ocr_method: Optional provenance tag of the recognizer that produced it

    Returns:
        ContactRecord with every field present (empty string when not found)
    """
    return _default_extractor.extract(text, ocr_method=ocr_method)
