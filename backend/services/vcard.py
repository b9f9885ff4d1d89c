"""
TapCard - Export vCard (bouton "Salvar contato")
"""

import re
import unicodedata
from typing import Optional
from urllib.parse import quote

from models.profile import ProfileDocument, CompanyDocument


def escape_value(value: str) -> str:
    """Échappement des valeurs texte vCard 3.0 (RFC 2426): \\ , ; et retours ligne"""
    value = value.replace("\\", "\\\\")
    value = value.replace(",", "\\,").replace(";", "\\;")
    return re.sub(r"\r\n|\r|\n", "\\\\n", value)


def build_vcard(profile: ProfileDocument, company: Optional[CompanyDocument] = None) -> str:
    fields = [
        ("FN", profile.name),
        ("TITLE", profile.role_title),
        ("ORG", company.name if company else None),
        ("TEL;TYPE=CELL", profile.whatsapp),
        ("URL", profile.website),
        ("X-SOCIALPROFILE;type=linkedin", profile.linkedin),
    ]
    lines = ["BEGIN:VCARD", "VERSION:3.0"]
    lines += [f"{key}:{escape_value(value)}" for key, value in fields if value]
    lines.append("END:VCARD")
    return "\n".join(lines)


def vcard_filename(profile: ProfileDocument) -> str:
    return "_".join(profile.name.split()) + ".vcf"


def content_disposition(filename: str) -> str:
    """
    En-tête Content-Disposition sûr pour tout nom:
    repli ASCII (accents retirés, caractères spéciaux → _) + forme RFC 5987 UTF-8.
    """
    stem, _, ext = filename.rpartition(".")
    ascii_stem = unicodedata.normalize("NFKD", stem).encode("ascii", "ignore").decode("ascii")
    ascii_stem = re.sub(r"[^A-Za-z0-9-]+", "_", ascii_stem).strip("_") or "contact"
    return f"attachment; filename=\"{ascii_stem}.{ext}\"; filename*=UTF-8''{quote(filename, safe='')}"
