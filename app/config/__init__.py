# app/config/__init__.py
from __future__ import annotations

"""
app.config is a PACKAGE.

- Company identity lives in: app.config.company
- App runtime settings live in: app.settings
"""

from .company import DEFAULT_COMPANY, CompanyProfile, company_context

__all__ = ["DEFAULT_COMPANY", "CompanyProfile", "company_context"]
