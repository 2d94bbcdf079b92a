"""
Template registry — the fixed catalog of starter projects.

Built once at import time and exposed read-only. Callers only offer
registry keys as choices, so ``descriptor_for`` failing is a defensive
check rather than an expected path.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Iterable, Mapping

from create_cerces.core.errors import UnknownTemplate
from create_cerces.core.models.template import TemplateDescriptor, TemplateParameter

TEMPLATE_ROOT = "ianhco/cerces/templates"

_TEMPLATES: tuple[TemplateDescriptor, ...] = (
    TemplateDescriptor(
        key="bun",
        description="Node.js compatible ultra-fast runtime.",
        remote_source=f"{TEMPLATE_ROOT}/bun",
        requires_runtime="bun",
        has_dev_server=True,
    ),
    TemplateDescriptor(
        key="cf-workers",
        description="Serverless functions on Cloudflare Workers.",
        remote_source=f"{TEMPLATE_ROOT}/cf-workers",
        has_dev_server=True,
        substitution_files=("wrangler.jsonc",),
        post_install_scripts=("cf-typegen",),
    ),
    TemplateDescriptor(
        key="cf-workers-d1",
        description="Cloudflare Workers with a D1 database binding.",
        remote_source=f"{TEMPLATE_ROOT}/cf-workers-d1",
        has_dev_server=True,
        substitution_files=("wrangler.jsonc", "package.json"),
        post_install_scripts=("cf-typegen",),
        parameters=(
            TemplateParameter(
                name="database",
                token="%%DB_NAME%%",
                prompt="Enter the name of the D1 database",
                files=("wrangler.jsonc", "package.json"),
            ),
        ),
        follow_up=(
            "Create the database with `wrangler d1 create {database}` and paste "
            "the returned `database_id` into wrangler.jsonc."
        ),
    ),
    TemplateDescriptor(
        key="aws-lambda",
        description="Serverless functions on AWS Lambda.",
        remote_source=f"{TEMPLATE_ROOT}/aws-lambda",
    ),
    TemplateDescriptor(
        key="docker",
        description="Containers deployable to Cloud Run, Container Apps, etc.",
        remote_source=f"{TEMPLATE_ROOT}/docker",
        requires_runtime="bun",
        has_dev_server=True,
    ),
    TemplateDescriptor(
        key="cloudflare",
        description="Cloudflare Workers through the official create-cloudflare CLI.",
        remote_source=f"{TEMPLATE_ROOT}/cf-workers",
        has_dev_server=True,
        delegate_package="cloudflare@latest",
    ),
)


def build_catalog(templates: Iterable[TemplateDescriptor]) -> Mapping[str, TemplateDescriptor]:
    """Index descriptors by key, read-only.

    Raises:
        ValueError: Two descriptors share a key.
    """
    catalog: dict[str, TemplateDescriptor] = {}
    for template in templates:
        if template.key in catalog:
            raise ValueError(f"Duplicate template key '{template.key}'")
        catalog[template.key] = template
    return MappingProxyType(catalog)


TEMPLATES: Mapping[str, TemplateDescriptor] = build_catalog(_TEMPLATES)


def template_keys() -> list[str]:
    """All template keys, in catalog order."""
    return list(TEMPLATES)


def descriptor_for(key: str) -> TemplateDescriptor:
    """Look up a template by key.

    Raises:
        UnknownTemplate: The key is not in the registry.
    """
    try:
        return TEMPLATES[key]
    except KeyError:
        raise UnknownTemplate(key, template_keys()) from None
