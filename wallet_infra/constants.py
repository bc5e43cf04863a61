from pathlib import Path

import wallet_infra

#
# Filesystem
#

DEPLOYMENT_DIR = Path(wallet_infra.__file__).parent
CONFIG_DIR = DEPLOYMENT_DIR / "environments"
ARTIFACTS_DIR = DEPLOYMENT_DIR / "artifacts"
ABI_DIR = ARTIFACTS_DIR / "abi"

#
# Environments
#

DEVELOPMENT = "development"
TEST = "test"
STAGING = "staging"
PROD = "prod"

SUPPORTED_ENVIRONMENTS = [DEVELOPMENT, TEST, STAGING, PROD]

# integrations (aave v2, balancer, yearn, lido) are not available on these
LIMITED_ENVIRONMENTS = [TEST]

LOCAL_NETWORKS = ["local"]

#
# Contracts
#

DEFAULT_REGISTRY_ID = 0

# immediate additions to the default registry while it is being populated
INITIAL_TIMELOCK = 0

WALLET_DETECTOR = "ArgentWalletDetector"
MULTISIG_WALLET = "MultiSigWallet"

INFRASTRUCTURE_CONTRACTS = [
    "DappRegistry",
    "WalletFactory",
    "BaseWallet",
    "MultiCallHelper",
    "TokenRegistry",
]

#
# ABI store
#

ABI_FOLDER = "contracts"
