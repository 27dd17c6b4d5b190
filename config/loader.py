# config/loader.py
import logging
import os
import re
from dataclasses import dataclass
from typing import Any, Dict

import yaml
from aws_cdk import Stack, Tags

from utils.naming import to_kebab, to_pascal

from .base_config import AwsConfig, InfrastructureConfig, NamingConfig, ProtectorConfig

logger = logging.getLogger(__name__)

VARIABLE_PATTERN = re.compile(r"\$\{([^}]+)\}")


@dataclass
class Context:
    env_name: str
    tenant_name: str

    def kebab_prefix(self, base: str) -> str:
        return to_kebab(f"{self.tenant_name}-{self.env_name}") + "-" + base

    def pascal_prefix(self, base: str) -> str:
        return to_pascal(self.tenant_name) + to_pascal(self.env_name) + base

    def add_stack_global_tags(self, stack: Stack):
        """Adds global tags to every resource of the stack."""
        for key, value in self.tags.items():
            Tags.of(stack).add(key, value)

    @property
    def tags(self):
        return {
            "EnvName": self.env_name,
            "TenantName": self.tenant_name,
            "ManagedBy": "CDK",
            "Protection": "S3Protector",
        }


@dataclass
class InfrastructureContext:
    config: InfrastructureConfig
    context: Context


def substitute_variables(data: Any, variables: Dict[str, str]) -> Any:
    """
    Recursively replace ${variable_name} placeholders.

    Raises:
        ValueError: If a placeholder references an undefined variable
    """
    if isinstance(data, str):
        for var_name in VARIABLE_PATTERN.findall(data):
            if var_name not in variables:
                raise ValueError(
                    f"Variable '${var_name}' is used but not defined in 'variables' section. "
                    f"Available variables: {list(variables.keys())}"
                )
        return VARIABLE_PATTERN.sub(lambda match: str(variables[match.group(1)]), data)
    if isinstance(data, dict):
        return {key: substitute_variables(value, variables) for key, value in data.items()}
    if isinstance(data, list):
        return [substitute_variables(item, variables) for item in data]
    return data


def resolve_variables(variables: Dict[str, Any], max_passes: int = 10) -> Dict[str, Any]:
    """Let variables reference each other, e.g. bucket: "${tenant}-logs"."""
    resolved = dict(variables)
    for _ in range(max_passes):
        changed = False
        for key, value in resolved.items():
            if isinstance(value, str):
                new_value = substitute_variables(value, resolved)
                if new_value != value:
                    resolved[key] = new_value
                    changed = True
        if not changed:
            break
    else:
        logger.warning("Variable substitution may not have converged after max passes")
    return resolved


class ConfigLoader:
    """
    Loader for the configuration files.

    Reads config/<tenant>/<env>.yaml and builds the InfrastructureContext.
    """

    def __init__(self, env_name: str, tenant_name: str = "default", base_path: str = None):
        """
        Args:
            env_name: The name of the environment.
            tenant_name: The name of the tenant.
            base_path: Directory holding the tenant folders (default: this package).
        """
        self._env_name = env_name
        self._tenant_name = tenant_name
        self.base_path = base_path or os.path.dirname(os.path.abspath(__file__))

    def generate_stack_name(self) -> str:
        return f"{to_pascal(self._tenant_name)}-{to_pascal(self._env_name)}-S3Protector"

    def load_environment_config(self) -> Dict[str, Any]:
        """Load the YAML file and substitute variables."""
        config_path = os.path.join(self.base_path, self._tenant_name, f"{self._env_name}.yaml")
        if not os.path.exists(config_path):
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        with open(config_path, "r") as f:
            raw_config = yaml.safe_load(f) or {}

        variables = raw_config.pop("variables", {})
        if not isinstance(variables, dict):
            raise ValueError("'variables' section must be a dictionary")

        if variables:
            variables = resolve_variables(variables)
            logger.info(f"Substituting variables: {list(variables.keys())}")
            raw_config = substitute_variables(raw_config, variables)

        return raw_config

    def create_infra_context(self) -> InfrastructureContext:
        """Create the complete configuration."""
        env_config = self.load_environment_config()
        if "aws" not in env_config:
            raise ValueError(f"Missing 'aws' section for {self._tenant_name}/{self._env_name}")

        infra_config = InfrastructureConfig(
            aws=AwsConfig(**env_config["aws"]),
            protector=ProtectorConfig(**env_config.get("protector", {})),
            naming=NamingConfig(**env_config.get("naming", {})),
        )
        logger.info(f"Config: {infra_config}")

        context = Context(
            env_name=env_config.get("env_name_override") or self._env_name,
            tenant_name=env_config.get("tenant_name_override") or self._tenant_name,
        )

        return InfrastructureContext(config=infra_config, context=context)
