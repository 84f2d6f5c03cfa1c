# app/config/company.py
from __future__ import annotations

"""
Single source of truth for the company identity printed on the website,
the admin previews and every generated PDF.

Keep these values in one place so HTML and PDF outputs never disagree.
"""

from dataclasses import dataclass

# -----------------------------
# Canonical fields
# -----------------------------
COMPANY_NAME = "CR Home Pros"
COMPANY_SHORT_NAME = "C&R"
COMPANY_LEGAL_NAME = "General Services Inc."
COMPANY_TAGLINE = "Licensed  |  Insured  |  Bonded"
COMPANY_MOTTO = "We Are In This Business For You"

COMPANY_PHONE = "(571) 237-7164"
COMPANY_EMAIL = "crhomepros@gmail.com"
COMPANY_WEBSITE = "www.crgenserv.com"
COMPANY_LICENSE = "MHIC #05-132359"

# Person who signs on behalf of the company ("Provided and Guaranteed by").
SIGNER_NAME = "Carlos Hernandez"
SIGNER_TITLE = "President, CRGS, Inc."

# Landing page service list
COMPANY_SERVICES = [
    "Kitchen Remodeling",
    "Bathroom Remodeling",
    "Basement Finishing",
    "Drywall & Plaster Repair",
    "Interior & Exterior Painting",
    "Flooring",
    "Decks & Fences",
    "Power Washing",
]


@dataclass(frozen=True)
class CompanyProfile:
    name: str
    short_name: str
    legal_name: str
    tagline: str
    motto: str
    phone: str
    email: str
    website: str
    license: str
    signer_name: str
    signer_title: str

    @property
    def contact_line(self) -> str:
        return f"{self.website}  |  {self.phone}  |  {self.email}"

    @property
    def footer_line(self) -> str:
        return f"{self.short_name} {self.legal_name}".upper() + f"  |  {self.motto}"


DEFAULT_COMPANY = CompanyProfile(
    name=COMPANY_NAME,
    short_name=COMPANY_SHORT_NAME,
    legal_name=COMPANY_LEGAL_NAME,
    tagline=COMPANY_TAGLINE,
    motto=COMPANY_MOTTO,
    phone=COMPANY_PHONE,
    email=COMPANY_EMAIL,
    website=COMPANY_WEBSITE,
    license=COMPANY_LICENSE,
    signer_name=SIGNER_NAME,
    signer_title=SIGNER_TITLE,
)


def company_context() -> dict:
    """Template context injection (see create_app)."""
    return {
        "COMPANY": DEFAULT_COMPANY,
        "COMPANY_NAME": COMPANY_NAME,
        "COMPANY_PHONE": COMPANY_PHONE,
        "COMPANY_EMAIL": COMPANY_EMAIL,
        "COMPANY_WEBSITE": COMPANY_WEBSITE,
        "COMPANY_SERVICES": COMPANY_SERVICES,
    }
