"""
Dapp filters of the default registry.

Every integration deploys the filter contract(s) guarding calls from wallets to a
third-party protocol and registers them against the protocol addresses listed in the
`defi` section of the configuration.
"""

from typing import Any, Callable, Dict, List, NamedTuple

from ape.contracts import ContractInstance
from ape.utils import ZERO_ADDRESS
from eth_utils import to_checksum_address
from hexbytes import HexBytes

from wallet_infra.constants import DEFAULT_REGISTRY_ID, LIMITED_ENVIRONMENTS
from wallet_infra.params import Deployer
from wallet_infra.utils import get_contract_container


def _freeze(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(v) for v in value)
    return value


def _address(value: str) -> str:
    return to_checksum_address(value)


class FilterRegistrar:
    """Deploys filters and adds them to one registry of a DappRegistry."""

    def __init__(
        self,
        deployer: Deployer,
        infrastructure: Dict[str, ContractInstance],
        registry_id: int = DEFAULT_REGISTRY_ID,
    ):
        self.deployer = deployer
        self.infrastructure = infrastructure
        self.dapp_registry = infrastructure["DappRegistry"]
        self.registry_id = registry_id
        self._filters: Dict[tuple, ContractInstance] = dict()

    @property
    def filters(self) -> List[ContractInstance]:
        return list(self._filters.values())

    def deploy_filter(self, name: str, *args) -> ContractInstance:
        """Deploys a filter, reusing an earlier deployment with the same arguments."""
        key = (name, _freeze(args))
        if key in self._filters:
            return self._filters[key]
        print(f"Deploying {name}")
        instance = self.deployer.deploy(get_contract_container(name), *args)
        self._filters[key] = instance
        return instance

    def add_dapp(self, dapp: str, filter_address: str) -> None:
        self.deployer.transact(
            self.dapp_registry.addDapp, self.registry_id, _address(dapp), filter_address
        )


#
# Integrations
#


def register_refund_collector(registrar: FilterRegistrar, config: Dict) -> None:
    print("Adding refund collector")
    registrar.add_dapp(config["backend"]["refund_collector"], ZERO_ADDRESS)


def register_compound(registrar: FilterRegistrar, config: Dict) -> None:
    markets = config["defi"]["compound"]["markets"]
    for underlying, ctoken in markets.items():
        print(f"Deploying filter for Compound Underlying {underlying}")
        compound_filter = registrar.deploy_filter("CompoundCTokenFilter", _address(underlying))
        print(f"Adding filter for Compound Underlying {underlying}")
        registrar.add_dapp(ctoken, compound_filter.address)


def register_paraswap(registrar: FilterRegistrar, config: Dict) -> None:
    paraswap = config["defi"]["paraswap"]
    forks = paraswap.get("uniswap_forks") or list()
    exchanges = paraswap.get("authorised_exchanges") or dict()
    paraswap_filter = registrar.deploy_filter(
        "ParaswapFilter",
        config["modules"]["TokenRegistry"],
        registrar.dapp_registry.address,
        _address(paraswap["uniswap_proxy"]),
        [_address(fork["factory"]) for fork in forks],
        [HexBytes(fork["init_code"]) for fork in forks],
        [_address(exchange) for exchange in exchanges.values()],
    )
    registrar.add_dapp(paraswap["contract"], paraswap_filter.address)


def register_paraswap_proxy(registrar: FilterRegistrar, config: Dict) -> None:
    only_approve_filter = registrar.deploy_filter("OnlyApproveFilter")
    augustus = get_contract_container("IAugustusSwapper").at(
        _address(config["defi"]["paraswap"]["contract"])
    )
    registrar.add_dapp(augustus.getTokenTransferProxy(), only_approve_filter.address)


def register_aave_v2(registrar: FilterRegistrar, config: Dict) -> None:
    aave_v2_filter = registrar.deploy_filter("AaveV2Filter")
    registrar.add_dapp(config["defi"]["aave"]["contract"], aave_v2_filter.address)


def register_balancer(registrar: FilterRegistrar, config: Dict) -> None:
    balancer_filter = registrar.deploy_filter("BalancerFilter")
    for pool in config["defi"]["balancer"]["pools"]:
        print(f"Adding filter for Balancer pool {pool}")
        registrar.add_dapp(pool, balancer_filter.address)


def register_yearn(registrar: FilterRegistrar, config: Dict) -> None:
    yearn = config["defi"]["yearn"]
    yearn_filter = registrar.deploy_filter("YearnFilter", False)
    weth_yearn_filter = registrar.deploy_filter("YearnFilter", True)
    for pool in yearn.get("pools") or list():
        print(f"Adding filter for Yearn pool {pool}")
        registrar.add_dapp(pool, yearn_filter.address)
    for pool in yearn.get("weth_pools") or list():
        print(f"Adding filter for WETH Yearn pool {pool}")
        registrar.add_dapp(pool, weth_yearn_filter.address)


def register_lido(registrar: FilterRegistrar, config: Dict) -> None:
    lido = config["defi"]["lido"]
    lido_filter = registrar.deploy_filter("LidoFilter")
    registrar.add_dapp(lido["contract"], lido_filter.address)
    # stETH -> ETH pool
    curve_filter = registrar.deploy_filter("CurveFilter")
    registrar.add_dapp(lido["steth_curve_pool"], curve_filter.address)


def register_maker(registrar: FilterRegistrar, config: Dict) -> None:
    maker = config["defi"]["maker"]
    pot = _address(maker["pot"])

    pot_filter = registrar.deploy_filter("PotFilter")
    registrar.add_dapp(pot, pot_filter.address)

    migration = get_contract_container("ScdMcdMigration").at(_address(maker["migration"]))
    dai_join = migration.daiJoin()
    dai_join_filter = registrar.deploy_filter("DaiJoinFilter")
    registrar.add_dapp(dai_join, dai_join_filter.address)

    vat = migration.vat()
    vat_filter = registrar.deploy_filter("VatFilter", _address(dai_join), pot)
    registrar.add_dapp(vat, vat_filter.address)


def register_uniswap_v2(registrar: FilterRegistrar, config: Dict) -> None:
    uniswap = config["defi"]["uniswap"]
    uniswap_filter = registrar.deploy_filter(
        "UniswapV2UniZapFilter",
        registrar.infrastructure["TokenRegistry"].address,
        _address(uniswap["factory_v2"]),
        HexBytes(uniswap["init_code_v2"]),
        _address(config["defi"]["weth"]),
    )
    registrar.add_dapp(uniswap["unizap"], uniswap_filter.address)


def register_aave_v1(registrar: FilterRegistrar, config: Dict) -> None:
    aave = config["defi"]["aave"]
    lending_pool_filter = registrar.deploy_filter("AaveV1LendingPoolFilter")
    registrar.add_dapp(aave["lending_pool"], lending_pool_filter.address)

    print("Adding OnlyApproveFilter for Aave lending pool core")
    only_approve_filter = registrar.deploy_filter("OnlyApproveFilter")
    registrar.add_dapp(aave["lending_pool_core"], only_approve_filter.address)

    atoken_filter = registrar.deploy_filter("AaveV1ATokenFilter")
    for atoken in aave.get("a_tokens") or list():
        print(f"Adding filter for Aave token {atoken}")
        registrar.add_dapp(atoken, atoken_filter.address)


class Integration(NamedTuple):
    name: str
    register: Callable[[FilterRegistrar, Dict], None]
    live_only: bool = False


INTEGRATIONS = [
    Integration("refund collector", register_refund_collector),
    Integration("compound", register_compound),
    Integration("paraswap", register_paraswap),
    Integration("paraswap proxy", register_paraswap_proxy),
    Integration("aave v2", register_aave_v2, live_only=True),
    Integration("balancer", register_balancer, live_only=True),
    Integration("yearn", register_yearn, live_only=True),
    Integration("lido", register_lido, live_only=True),
    Integration("maker", register_maker),
    Integration("uniswap v2", register_uniswap_v2),
    Integration("aave v1", register_aave_v1),
]


def register_filters(registrar: FilterRegistrar, config: Dict, environment: str) -> None:
    """Deploys and registers the filters of every integration, in order."""
    for integration in INTEGRATIONS:
        if integration.live_only and environment in LIMITED_ENVIRONMENTS:
            print(f"(i) Skipping {integration.name} filters on {environment}")
            continue
        print(f"\nSetting up {integration.name}")
        integration.register(registrar, config)
