"""
API Routes Package
"""
from . import (
    health,
    limits,
    usage,
    modules,
    features,
    org_time,
    resources,
    voice_campaigns,
    subscriptions,
    functions,
)
