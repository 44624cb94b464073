"""Per-language rule table shared by prompting, post-processing and QA.

Every language-specific constant (script digits, formal vocabulary,
canonical header labels, calque phrases, prompt guidance) lives in one
``LanguageRuleSet`` per target language, looked up by locale code.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from spreadsheet_translator.sheet_document import TargetLanguage

DEVANAGARI_DIGITS = "०१२३४५६७८९"

CANONICAL_HEADERS: tuple[str, ...] = (
    "Question",
    "Option1",
    "Option2",
    "Option3",
    "Option4",
    "Correct ans",
    "Answer",
    "Explanation",
)

# Leading "1. " / "१. " ordinal in either Arabic or Devanagari digits.
ORDINAL_PREFIX_RE = re.compile(r"^[०-९0-9]+\.\s*")

# Calques that read as word-for-word copies of English phrases. Both
# supported languages share Devanagari vocabulary, so one table serves both.
LITERAL_TRANSLATIONS: dict[str, str] = {
    "समय प्रबंधन": "टाइम मैनेजमेंट",
    "कौशल विकास": "स्किल डेवलपमेंट",
    "ज्ञान प्रबंधन": "नॉलेज मैनेजमेंट",
    "गुणवत्ता आश्वासन": "क्वालिटी एश्योरेंस",
    "प्रदर्शन मूल्यांकन": "परफॉरमेंस इवैल्यूएशन",
}

_HINDI_PROMPT_RULES = """HINDI TRANSLATION QUALITY RULES (MANDATORY):

1. TONE AND REGISTER:
- Use colloquial, student-friendly Hindi over overly formal or Sanskritised phrases
- Avoid bureaucratic vocabulary unless contextually required
- Use second-person respectful singular (आप, कीजिए) consistently for professional but friendly tone

2. FORMAL WORDS TO REPLACE:
{formal_words}

3. STRUCTURE & FORMAT:
- Ensure row-wise alignment between English and Hindi
- Use consistent column mappings: {header_examples}
- NEVER add serial numbers to column headers - translate them exactly as specified

4. LITERAL TRANSLATION CHECKS:
- Avoid calque translations (literal word-for-word copying of English structure)
- Use natural Hindi idioms where appropriate

5. GRAMMAR CONSISTENCY:
- Ensure gender agreement and postposition accuracy
- Maintain consistent honorific usage
- Avoid mixing pronouns (don't switch between आप and तुम)

6. CULTURAL & CONTEXTUAL ADAPTATION:
- Use terms familiar to Indian classrooms for educational content
- Use Indian names and scenarios in examples when applicable"""


@dataclass(frozen=True)
class LanguageRuleSet:
    """Static rules for one target language.

    Attributes:
        language: Locale this rule set applies to.
        name: English language name used in prompts.
        native_name: Language name in its own script.
        digits: Target-script digits for 0 through 9.
        formal_words: Formal term mapped to colloquial alternatives; the
            first alternative is the automatic substitution.
        header_labels: Canonical translation for each known column header.
        literal_translations: Calque phrase mapped to a natural alternative.
        prompt_rules: Extra register guidance for the system prompt, or None
            when the language has no dedicated rule set.
    """

    language: TargetLanguage
    name: str
    native_name: str
    digits: str
    formal_words: dict[str, tuple[str, ...]] = field(default_factory=dict)
    header_labels: dict[str, str] = field(default_factory=dict)
    literal_translations: dict[str, str] = field(default_factory=dict)
    prompt_rules: str | None = None

    @property
    def digit_map(self) -> dict[str, str]:
        """Arabic digit to target-script digit."""
        return {str(i): digit for i, digit in enumerate(self.digits)}

    @property
    def substitutions(self) -> dict[str, str]:
        """Formal term to its primary colloquial replacement."""
        return {formal: alts[0] for formal, alts in self.formal_words.items() if alts}

    def canonical_header(self, original_text: str) -> str | None:
        """Canonical label for ``original_text`` if it is a known header."""
        return self.header_labels.get(original_text.strip())

    def render_prompt_rules(self) -> str | None:
        if self.prompt_rules is None:
            return None
        formal_lines = "\n".join(
            f"- {formal} → {' / '.join(alts)}"
            for formal, alts in self.formal_words.items()
        )
        header_examples = ", ".join(
            f'"{english}" → "{label}"'
            for english, label in list(self.header_labels.items())[:6]
        )
        return self.prompt_rules.format(
            formal_words=formal_lines,
            header_examples=header_examples,
        )


HINDI_RULES = LanguageRuleSet(
    language=TargetLanguage.HINDI,
    name="Hindi",
    native_name="हिंदी",
    digits=DEVANAGARI_DIGITS,
    formal_words={
        "औपचारिक": ("ज़रूरी", "सरकारी"),
        "प्रस्ताव": ("योजना",),
        "स्पष्टता": ("साफ़ समझ",),
        "प्रशिक्षण": ("सीखने की पहल",),
        "प्रक्रिया": ("तरीका",),
        "संदर्भ": ("साथ", "स्थिति के अनुसार"),
        "विश्लेषण": ("जांच", "समझ"),
        "सुलभ": ("आसान", "सरल"),
        "स्थापित": ("मज़बूत करना", "बनाना"),
        "सहभागिता": ("भागीदारी", "हिस्सा लेना"),
        "कार्यान्वयन": ("लागू करना", "शुरू करना"),
        "परिणाम": ("नतीजा", "फल"),
        "उद्देश्य": ("लक्ष्य", "मकसद"),
        "प्राप्ति": ("हासिल करना", "पाना"),
        "व्यवस्था": ("इंतज़ाम", "बंदोबस्त"),
        "प्रबंधन": ("संचालन", "प्रबंध"),
        "विकास": ("बढ़ावा", "उन्नति"),
        "सुधार": ("बेहतर बनाना", "सुधारना"),
        "निरीक्षण": ("जांच", "देखना"),
        "परीक्षण": ("टेस्ट", "जांच"),
    },
    header_labels={
        "Question": "प्रश्न",
        "Option1": "विकल्प 1",
        "Option2": "विकल्प 2",
        "Option3": "विकल्प 3",
        "Option4": "विकल्प 4",
        "Correct ans": "सही उत्तर",
        "Answer": "उत्तर",
        "Explanation": "व्याख्या",
    },
    literal_translations=LITERAL_TRANSLATIONS,
    prompt_rules=_HINDI_PROMPT_RULES,
)

MARATHI_RULES = LanguageRuleSet(
    language=TargetLanguage.MARATHI,
    name="Marathi",
    native_name="मराठी",
    digits=DEVANAGARI_DIGITS,
    formal_words={
        "औपचारिक": ("आवश्यक", "सरकारी"),
        "प्रस्ताव": ("योजना",),
        "स्पष्टता": ("स्पष्ट समज",),
        "प्रशिक्षण": ("शिकण्याची सुरुवात",),
        "प्रक्रिया": ("पद्धत",),
        "संदर्भ": ("स्थिती", "परिस्थितीनुसार"),
        "विश्लेषण": ("तपासणी", "समज"),
        "सुलभ": ("सोपे", "सरळ"),
        "स्थापित": ("मजबूत करणे", "तयार करणे"),
        "सहभागिता": ("सहभाग", "भाग घेणे"),
    },
    header_labels={
        "Question": "प्रश्न",
        "Option1": "पर्याय 1",
        "Option2": "पर्याय 2",
        "Option3": "पर्याय 3",
        "Option4": "पर्याय 4",
        "Correct ans": "योग्य उत्तर",
        "Answer": "उत्तर",
        "Explanation": "स्पष्टीकरण",
    },
    literal_translations=LITERAL_TRANSLATIONS,
)

LANGUAGE_RULES: dict[TargetLanguage, LanguageRuleSet] = {
    rules.language: rules for rules in (HINDI_RULES, MARATHI_RULES)
}


def get_rule_set(language: TargetLanguage | str) -> LanguageRuleSet:
    """Look up the rule set for a locale code.

    Raises:
        ValueError: If the language is not supported.
    """
    return LANGUAGE_RULES[TargetLanguage(language)]


def strip_ordinal_prefix(text: str) -> str:
    """Remove a leading ``"<digits>. "`` ordinal in either digit script."""
    return ORDINAL_PREFIX_RE.sub("", text, count=1)


def is_canonical_header(text: str) -> bool:
    return text.strip() in CANONICAL_HEADERS
