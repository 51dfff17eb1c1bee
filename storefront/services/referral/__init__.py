"""
Referral module.

Components of the multi-level referral reward program.
"""

from storefront.services.referral.chain_walker import (
    ChainLink,
    ReferralChainWalker,
)
from storefront.services.referral.commission_distributor import (
    CommissionDistributor,
    CreditedCommission,
    DistributionResult,
)
from storefront.services.referral.commission_query import (
    CommissionDetail,
    CommissionQueryService,
)
from storefront.services.referral.reward_config import (
    RewardConfig,
    RewardConfigService,
)


__all__ = [
    "ChainLink",
    "CommissionDetail",
    "CommissionDistributor",
    "CommissionQueryService",
    "CreditedCommission",
    "DistributionResult",
    "ReferralChainWalker",
    "RewardConfig",
    "RewardConfigService",
]
