#!/usr/bin/env python3
import logging

import aws_cdk as cdk

from config.loader import ConfigLoader
from stacks.protector_stack import ProtectorStack


def setup_logging():
    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    )


setup_logging()
logger = logging.getLogger(__name__)

app = cdk.App()

ctx = app.node.try_get_context

tenant = ctx("tenant") or "default"
env_name = ctx("env") or "dev"

logger.info(f"CDK mode: tenant={tenant} env={env_name}")

config_loader = ConfigLoader(env_name, tenant)
infra_context = config_loader.create_infra_context()

ProtectorStack(
    app,
    config_loader.generate_stack_name(),
    infra_context=infra_context,
    env=cdk.Environment(
        account=infra_context.config.aws.account,
        region=infra_context.config.aws.region_str,
    ),
)

logger.info("Synthesis complete")

app.synth()
