"""Chain Gateway: contract access and fixed-point amount codec."""

from monspark.chain.gateway import ChainGateway

__all__ = ["ChainGateway"]
