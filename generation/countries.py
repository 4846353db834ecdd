"""
Registered country table used by the field derivation layer.

Each record carries the four values that templates reference through
country-derived placeholders. Lookups accept the country name (exact,
trimmed) or its ISO code (any case).
"""
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from .exceptions import UnsupportedCountry


@dataclass(frozen=True)
class CountryRecord:
    name: str
    code: str
    label: str
    standard_time: str
    dialing_code: str
    time_short: str
    currency: str
    order: int = 0

    def as_template_values(self) -> Dict[str, str]:
        return {
            "Country_Standard_Time": self.standard_time,
            "Country_Code": self.dialing_code,
            "Country_Standard_Time_Short": self.time_short,
            "COUNTRY_CURRENCY_SHORT_NAME": self.currency,
        }


DEFAULT_COUNTRIES = (
    CountryRecord("India", "IN", "IN India", "Indian Standard Time (IST)", "+91", "IST", "INR", 0),
    CountryRecord("UAE", "AE", "AE UAE", "Gulf Standard Time (GST)", "+971", "GST", "AED", 1),
    CountryRecord(
        "Australia", "AU", "AU Australia",
        "Australian Eastern Standard Time (AEST)", "+61", "AEST", "AUD", 2,
    ),
)


class CountryTable:
    def __init__(self, records: Iterable[CountryRecord] = DEFAULT_COUNTRIES):
        self._records: List[CountryRecord] = sorted(records, key=lambda r: (r.order, r.name))
        self._by_name = {r.name: r for r in self._records}
        self._by_code = {r.code.upper(): r for r in self._records}

    def __iter__(self):
        return iter(self._records)

    def __len__(self):
        return len(self._records)

    def get(self, country: str) -> Optional[CountryRecord]:
        key = (country or "").strip()
        return self._by_name.get(key) or self._by_code.get(key.upper())

    def resolve(self, country) -> Dict[str, str]:
        """Return the four derived country values, or raise UnsupportedCountry."""
        if not isinstance(country, str) or not country.strip():
            raise UnsupportedCountry("Country must be a non-empty string", value=country)
        record = self.get(country)
        if record is None:
            supported = ", ".join(r.name for r in self._records)
            raise UnsupportedCountry(
                f'Unsupported country: "{country}". Supported: {supported}', value=country
            )
        return record.as_template_values()


default_country_table = CountryTable()
