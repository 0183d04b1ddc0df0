from .askers import (
    Asker as Asker,
    AskResult as AskResult,
    CallableAsker as CallableAsker,
    FailureReason as FailureReason,
)
from .config import (
    DnsResolverSpec as DnsResolverSpec,
    ExhaustionPolicy as ExhaustionPolicy,
    HttpResolverSpec as HttpResolverSpec,
    PoolConfig as PoolConfig,
    QuorumConfig as QuorumConfig,
)
from .errors import (
    ConfigError as ConfigError,
    NoQuorumError as NoQuorumError,
    QuorumError as QuorumError,
    QuorumTimeoutError as QuorumTimeoutError,
    ResolversFailedError as ResolversFailedError,
)
from .loader import load_pool_config as load_pool_config
from .quorum import (
    aggregate as aggregate,
    quorum_threshold as quorum_threshold,
    QuorumOutcome as QuorumOutcome,
    run_quorum as run_quorum,
)
from .resolve import (
    default_pool as default_pool,
    resolve_pool as resolve_pool,
    resolve_via_dns as resolve_via_dns,
    resolve_via_http as resolve_via_http,
)

__version__ = "0.1.0"
