"""Resolution of the named descriptor into an assembly job."""

from __future__ import annotations

from dataclasses import replace
from typing import Sequence

from projectsrc.core.constants import CLASSIFIER
from projectsrc.core.exceptions import ConfigurationError, DescriptorReadError, MissingDescriptorError
from projectsrc.core.logging import get_logger
from projectsrc.core.models import ArchiverConfig, AssemblyJob

from .reader import DescriptorReader

LOGGER = get_logger(__name__)


class DescriptorResolver:
    """Load one descriptor and stamp it with the archive identity and formats."""

    def __init__(self, reader: DescriptorReader | None = None, *, identity: str = CLASSIFIER) -> None:
        self._reader = reader or DescriptorReader()
        self._identity = identity

    def resolve(self, template_name: str, formats: Sequence[str], config: ArchiverConfig) -> AssemblyJob:
        view = replace(config, descriptor_references=(template_name,), descriptors=())
        try:
            templates = self._reader.read_templates(view)
        except DescriptorReadError as exc:
            raise DescriptorReadError(f"Error reading assemblies: {exc}") from exc
        except ConfigurationError as exc:
            raise ConfigurationError(f"Descriptor configuration is invalid: {exc}") from exc
        except Exception as exc:  # pylint: disable=broad-except
            raise DescriptorReadError(f"Error reading assemblies: {exc}") from exc

        if not templates:
            raise MissingDescriptorError(f"Cannot read {template_name!r} assembly descriptor")
        if len(templates) > 1:
            LOGGER.debug("descriptors.extra_templates_ignored", ignored=len(templates) - 1)

        # First template wins; later ones are ignored.
        template = templates[0]
        template.id = self._identity
        template.formats = list(formats)
        LOGGER.info("descriptors.resolved", template=template_name, identity=template.id, formats=template.formats)
        return AssemblyJob(identity=template.id, formats=tuple(formats), template=template)
