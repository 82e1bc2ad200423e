import re
import unicodedata

def normalize_title(title: str) -> str:
    text = unicodedata.normalize('NFKD', title).encode('ascii', 'ignore').decode('ascii')
    text = text.lower()
    text = re.sub(r'[^a-z0-9]+', ' ', text).strip()
    return re.sub(r'\s+', ' ', text)


def trimmed_or_none(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None

def parse_year(date_text: str | None) -> int | None:
    text = date_text or ''
    if len(text) >= 4 and text[:4].isdigit():
        return int(text[:4])
    return None
