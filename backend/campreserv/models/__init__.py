"""SQLAlchemy models for Campreserv.

All models are imported here so that Alembic's autogenerate can discover
them via Base.metadata. If you add a new model, import it in this file.
"""

from campreserv.models.audit import RuleAuditEntry
from campreserv.models.blackout import BlackoutDate
from campreserv.models.campground import Campground, Site, SiteClass
from campreserv.models.pricing_rule import DemandBand, PricingRule
from campreserv.models.promotion import Promotion
from campreserv.models.quote import Quote, QuoteRuleUsage
from campreserv.models.seasonal_rate import SeasonalRate, SeasonalRateWindow
from campreserv.models.stay_rule import StayRule
from campreserv.models.tax_rule import TaxRule

__all__ = [
    "BlackoutDate",
    "Campground",
    "DemandBand",
    "PricingRule",
    "Promotion",
    "Quote",
    "QuoteRuleUsage",
    "RuleAuditEntry",
    "SeasonalRate",
    "SeasonalRateWindow",
    "Site",
    "SiteClass",
    "StayRule",
    "TaxRule",
]
