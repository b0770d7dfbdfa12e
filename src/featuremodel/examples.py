"""
Example feature model factories.

Usable directly with --featureModelClass, e.g.

    featuremodel --featureModelClass featuremodel.examples.ExampleNetworkStackFactory

They also serve as templates for user-supplied factories: any class with a
no-argument constructor and a create_feature_model() method qualifies.
"""
from featuremodel.model import FeatureModel
from featuremodel.expressions import (
    BinaryExpression,
    BinaryOperator,
    FeatureReference,
    negate,
)


def build_example_network_model() -> FeatureModel:
    """
    A small network-stack product line:

        IPV6 => NET
        TLS => NET
        (TLS_OPENSSL || TLS_MBEDTLS) <=> TLS
        !(TLS_OPENSSL && TLS_MBEDTLS)
    """
    net = FeatureReference("NET")
    ipv6 = FeatureReference("IPV6")
    tls = FeatureReference("TLS")
    openssl = FeatureReference("TLS_OPENSSL")
    mbedtls = FeatureReference("TLS_MBEDTLS")

    return FeatureModel(
        constraints=(
            BinaryExpression(BinaryOperator.IMPLIES, ipv6, net),
            BinaryExpression(BinaryOperator.IMPLIES, tls, net),
            BinaryExpression(
                BinaryOperator.EQUIV,
                BinaryExpression(BinaryOperator.OR, openssl, mbedtls),
                tls,
            ),
            negate(BinaryExpression(BinaryOperator.AND, openssl, mbedtls)),
        ),
        source="featuremodel.examples.ExampleNetworkStackFactory",
    )


class ExampleNetworkStackFactory:
    """Factory for the example network-stack model."""

    def create_feature_model(self) -> FeatureModel:
        return build_example_network_model()
