"""Brand registry: verified institution domains and known scam mimics."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, Mapping

import yaml

from paysavvy.models import BrandRecord, ScamMimicRecord
from paysavvy.urls import normalize_domain

logger = logging.getLogger(__name__)

METADATA_KEY = "metadata"

DEFAULT_DATASET_PATH = Path(__file__).resolve().parent / "data" / "verified_brands.yaml"

# Fields of a brand definition that drive scoring; everything else is
# carried through untouched in BrandRecord.metadata.
_SCORING_FIELDS = {"domains", "commonScamMimics", "countryCode"}


class DatasetError(Exception):
    """Raised when a brand dataset file cannot be loaded."""


class BrandIndex:
    """Read-only lookup structure built once from a brand dataset.

    Verified and scam-mimic maps keep the insertion order of the dataset
    (region order, then brand order, then domain order). When a domain is
    registered twice the later brand wins but the key keeps its original
    position, so ``lookup_subdomain_of`` scans in first-registration order.
    """

    def __init__(
        self,
        verified: dict[str, BrandRecord],
        scam_mimics: dict[str, ScamMimicRecord],
        brands_by_region: dict[str, list[BrandRecord]],
    ) -> None:
        self._verified = verified
        self._scam_mimics = scam_mimics
        self._brands_by_region = brands_by_region
        self._brands_by_name = {
            brand.name.lower(): brand
            for brands in brands_by_region.values()
            for brand in brands
        }

    # -- queries -----------------------------------------------------------

    def lookup_exact(self, domain: str) -> BrandRecord | None:
        return self._verified.get(normalize_domain(domain))

    def lookup_subdomain_of(self, domain: str) -> BrandRecord | None:
        """Return the first brand that ``domain`` is a strict subdomain of."""
        domain = normalize_domain(domain)
        for verified_domain, brand in self._verified.items():
            if domain.endswith("." + verified_domain):
                return brand
        return None

    def lookup_scam_mimic(self, domain: str) -> ScamMimicRecord | None:
        return self._scam_mimics.get(normalize_domain(domain))

    def brand_named(self, name: str) -> BrandRecord | None:
        return self._brands_by_name.get(name.lower())

    def verified_items(self) -> Iterable[tuple[str, BrandRecord]]:
        """Iterate (domain, brand) pairs in index order."""
        return self._verified.items()

    def regions(self) -> list[str]:
        return list(self._brands_by_region)

    def brands_in_region(self, region: str) -> list[BrandRecord]:
        return list(self._brands_by_region.get(region, []))

    def all_domains(self) -> dict[str, list[str]]:
        """Return the whitelist, blacklist and distinct country codes."""
        country_codes: list[str] = []
        for brand in self._verified.values():
            if brand.country_code and brand.country_code not in country_codes:
                country_codes.append(brand.country_code)
        return {
            "whitelist": list(self._verified),
            "blacklist": list(self._scam_mimics),
            "country_codes": country_codes,
        }

    def verified_domains_sample(self, limit: int = 20) -> list[str]:
        """A representative slice of verified domains, e.g. for an AI prompt."""
        return list(self._verified)[:limit]

    def statistics(self) -> dict[str, Any]:
        return {
            "total_verified_domains": len(self._verified),
            "total_scam_patterns": len(self._scam_mimics),
            "total_regions": len(self._brands_by_region),
            "region_breakdown": {
                region: len(brands) for region, brands in self._brands_by_region.items()
            },
        }

    def __len__(self) -> int:
        return len(self._verified)

    def __contains__(self, domain: object) -> bool:
        return isinstance(domain, str) and normalize_domain(domain) in self._verified


def _as_domain_list(value: Any) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [value]
    return [str(v) for v in value if v]


def _make_record(name: str, region: str, definition: Mapping[str, Any]) -> BrandRecord:
    return BrandRecord(
        name=name,
        region=region,
        domains=tuple(normalize_domain(d) for d in _as_domain_list(definition.get("domains"))),
        scam_mimics=tuple(
            normalize_domain(d) for d in _as_domain_list(definition.get("commonScamMimics"))
        ),
        country_code=str(definition.get("countryCode") or ""),
        metadata={k: v for k, v in definition.items() if k not in _SCORING_FIELDS},
    )


def build_index(dataset: Mapping[str, Any]) -> BrandIndex:
    """Build a BrandIndex from a nested ``region -> brand -> definition`` mapping.

    The reserved ``metadata`` top-level key is skipped. Duplicate verified or
    scam-mimic registrations overwrite earlier ones and are logged.

    Args:
        dataset: The brand dataset.

    Returns:
        A fully built BrandIndex.
    """
    verified: dict[str, BrandRecord] = {}
    scam_mimics: dict[str, ScamMimicRecord] = {}
    brands_by_region: dict[str, list[BrandRecord]] = {}

    for region, brands in (dataset or {}).items():
        if region == METADATA_KEY or not isinstance(brands, Mapping):
            continue

        region = str(region)
        region_brands = brands_by_region.setdefault(region, [])
        for brand_name, definition in brands.items():
            if not isinstance(definition, Mapping):
                logger.warning("Skipping malformed brand entry %s/%s", region, brand_name)
                continue

            record = _make_record(str(brand_name), region, definition)
            region_brands.append(record)

            for domain in record.domains:
                previous = verified.get(domain)
                if previous is not None and previous.name != record.name:
                    logger.warning(
                        "Verified domain %s registered by both %s and %s; keeping %s",
                        domain, previous.name, record.name, record.name,
                    )
                verified[domain] = record

            for scam_domain in record.scam_mimics:
                previous_scam = scam_mimics.get(scam_domain)
                if previous_scam is not None and previous_scam.target_brand != record.name:
                    logger.warning(
                        "Scam mimic %s listed for both %s and %s; keeping %s",
                        scam_domain, previous_scam.target_brand, record.name, record.name,
                    )
                scam_mimics[scam_domain] = ScamMimicRecord(
                    domain=scam_domain,
                    target_brand=record.name,
                    region=region,
                    legitimate_domains=record.domains,
                )

    logger.debug(
        "Built brand index: %d verified domains, %d scam mimics, %d regions",
        len(verified), len(scam_mimics), len(brands_by_region),
    )
    return BrandIndex(verified, scam_mimics, brands_by_region)


def load_dataset(path: str | Path | None = None) -> dict[str, Any]:
    """Load a brand dataset from a YAML or JSON file.

    Args:
        path: Dataset file. Defaults to the bundled verified_brands.yaml.

    Returns:
        The raw nested dataset mapping.

    Raises:
        DatasetError: If the file is missing or does not hold a mapping.
    """
    dataset_path = Path(path) if path is not None else DEFAULT_DATASET_PATH
    try:
        text = dataset_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise DatasetError(f"Cannot read brand dataset {dataset_path}: {exc}") from exc

    try:
        if dataset_path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise DatasetError(f"Invalid brand dataset {dataset_path}: {exc}") from exc

    if not isinstance(data, dict):
        raise DatasetError(f"Brand dataset {dataset_path} must be a mapping of regions")
    return data
