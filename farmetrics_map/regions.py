"""
Ghana administrative regions and districts.

Reference data for the region/district labels carried by farm records.
The map view uses it to sanity-check ``focus_regions``; the server exposes it
for the region/district pickers.
"""

from typing import Dict, Iterable, List, Sequence

GHANA_REGIONS: Dict[str, List[str]] = {
    "Ashanti": [
        "Kumasi Metropolitan",
        "Obuasi Municipal",
        "Ejisu Municipal",
        "Asante-Akim North",
        "Asante-Akim South",
        "Asokore Mampong Municipal",
        "Bekwai Municipal",
        "Bosome Freho",
        "Bosomtwe",
        "Ejura Sekyedumase Municipal",
        "Kwabre East Municipal",
        "Kwadwo Krom",
        "Mampong Municipal",
        "Offinso Municipal",
        "Offinso North",
        "Sekyere Afram Plains",
        "Sekyere Central",
        "Sekyere East",
        "Sekyere Kumawu",
        "Sekyere South",
    ],
    "Greater Accra": [
        "Accra Metropolitan",
        "Tema Metropolitan",
        "Ashaiman Municipal",
        "La Nkwantanang Madina Municipal",
        "Adentan Municipal",
        "Ga East Municipal",
        "Ga West Municipal",
        "Ga South Municipal",
        "Ga Central Municipal",
        "Ledzokuku Municipal",
        "Krowor Municipal",
        "Ablekuma North Municipal",
        "Ablekuma Central Municipal",
        "Ablekuma West Municipal",
        "Ayawaso North Municipal",
        "Ayawaso East Municipal",
        "Ayawaso West Municipal",
        "Ayawaso Central Municipal",
        "Okaikwei North Municipal",
        "Korle Klottey Municipal",
    ],
    "Western": [
        "Sekondi-Takoradi Metropolitan",
        "Shama",
        "Ahanta West",
        "Nzema East Municipal",
        "Ellembelle",
        "Jomoro",
        "Tarkwa-Nsuaem Municipal",
        "Prestea Huni-Valley Municipal",
        "Wassa East",
        "Wassa Amenfi Central",
        "Wassa Amenfi East Municipal",
        "Wassa Amenfi West Municipal",
        "Aowin Municipal",
        "Suaman Municipal",
        "Bibiani Anhwiaso Bekwai Municipal",
    ],
    "Central": [
        "Cape Coast Metropolitan",
        "Elmina",
        "Komenda Edina Eguafo Abirem Municipal",
        "Abura Asebu Kwamankese",
        "Mfantseman Municipal",
        "Ajumako Enyan Essiam",
        "Gomoa East",
        "Gomoa Central",
        "Gomoa West",
        "Effutu Municipal",
        "Awutu Senya East Municipal",
        "Awutu Senya West",
        "Agona East",
        "Agona West Municipal",
        "Assin Central Municipal",
        "Assin North",
        "Assin South",
        "Twifo Atti-Morkwa",
        "Twifo Heman Lower Denkyira",
        "Upper Denkyira East Municipal",
        "Upper Denkyira West",
    ],
    "Eastern": [
        "New Juaben Municipal",
        "Koforidua",
        "Akuapem North Municipal",
        "Akuapem South",
        "Yilo Krobo Municipal",
        "Lower Manya Krobo Municipal",
        "Asuogyaman",
        "West Akim Municipal",
        "East Akim Municipal",
        "Atiwa East",
        "Atiwa West",
        "Kwaebibirem Municipal",
        "Denkyembour",
        "Kwahu West Municipal",
        "Kwahu South",
        "Kwahu East",
        "Kwahu Afram Plains South",
        "Kwahu Afram Plains North",
        "Okere",
        "Fanteakwa North",
        "Fanteakwa South",
    ],
    "Northern": [
        "Tamale Metropolitan",
        "Sagnarigu Municipal",
        "Gushegu Municipal",
        "Karaga",
        "Savelugu Municipal",
        "Nanton Municipal",
        "Tolon",
        "Kumbungu",
        "Zabzugu",
        "Tatale Sanguli",
        "Yendi Municipal",
        "Mion",
        "Saboba",
        "Chereponi",
        "Central Gonja",
        "East Gonja Municipal",
        "West Gonja",
        "North Gonja",
        "Sawla-Tuna-Kalba",
        "West Mamprusi Municipal",
        "East Mamprusi Municipal",
        "Mamprugu Moagduri",
    ],
    "Volta": [
        "Ho Municipal",
        "Hohoe Municipal",
        "Adaklu",
        "Agotime Ziope",
        "Ho West",
        "South Dayi",
        "North Dayi",
        "Kpando Municipal",
        "Biakoye",
        "Jasikan",
        "Kadjebi",
        "Krachi East Municipal",
        "Krachi West",
        "Krachi Nchumuru",
        "Nkwanta South Municipal",
        "Nkwanta North",
        "South Tongu",
        "Central Tongu",
        "North Tongu",
        "Akatsi South",
        "Akatsi North",
        "Keta Municipal",
        "Anloga",
    ],
    "Upper East": [
        "Bolgatanga Municipal",
        "Kassena Nankana West",
        "Kassena Nankana Municipal",
        "Builsa North Municipal",
        "Builsa South",
        "Nabdam",
        "Talensi",
        "Bawku Municipal",
        "Bawku West",
        "Pusiga",
        "Binduri",
        "Garu",
        "Tempane",
    ],
    "Upper West": [
        "Wa Municipal",
        "Wa East",
        "Wa West",
        "Nadowli-Kaleo",
        "Daffiama Bussie Issa",
        "Sissala East Municipal",
        "Sissala West",
        "Jirapa Municipal",
        "Lambussie Karni",
        "Lawra Municipal",
        "Nandom Municipal",
    ],
    "Bono": [
        "Sunyani Municipal",
        "Sunyani West",
        "Dormaa Central Municipal",
        "Dormaa East",
        "Dormaa West",
        "Berekum Municipal",
        "Jaman South Municipal",
        "Jaman North",
        "Tain",
        "Wenchi Municipal",
    ],
    "Bono East": [
        "Techiman Municipal",
        "Techiman North",
        "Nkoranza South Municipal",
        "Nkoranza North",
        "Kintampo North Municipal",
        "Kintampo South",
        "Atebubu-Amantin Municipal",
        "Sene West",
        "Sene East Municipal",
        "Pru East",
        "Pru West",
    ],
    "Ahafo": [
        "Tano South Municipal",
        "Tano North",
        "Asunafo South Municipal",
        "Asunafo North Municipal",
        "Asutifi North",
        "Asutifi South Municipal",
    ],
    "Western North": [
        "Sefwi Wiawso Municipal",
        "Bibiani Anhwiaso Bekwai Municipal",
        "Sefwi Akontombra",
        "Juaboso",
        "Bia East",
        "Bia West",
        "Bodi",
        "Suaman",
    ],
    "Savannah": [
        "Damongo",
        "Central Gonja",
        "East Gonja Municipal",
        "West Gonja",
        "North Gonja",
        "Sawla-Tuna-Kalba",
        "Bole",
    ],
    "North East": [
        "Nalerigu/Gambaga",
        "West Mamprusi Municipal",
        "East Mamprusi Municipal",
        "Mamprugu Moagduri",
        "Bunkpurugu-Nyankpanduri",
        "Yunyoo-Nasuan",
    ],
    "Oti": [
        "Krachi East Municipal",
        "Krachi West",
        "Krachi Nchumuru",
        "Nkwanta South Municipal",
        "Nkwanta North",
        "Kadjebi",
        "Jasikan",
        "Biakoye",
        "Guan",
    ],
}


def region_names() -> List[str]:
    """All region names, sorted."""
    return sorted(GHANA_REGIONS)


def get_districts(region: str) -> List[str]:
    """Districts of ``region`` (empty list for unknown regions)."""
    return list(GHANA_REGIONS.get(region, []))


def is_known_region(region: str) -> bool:
    return region in GHANA_REGIONS


def is_known_district(region: str, district: str) -> bool:
    return district in GHANA_REGIONS.get(region, ())


def unknown_regions(regions: Iterable[str]) -> List[str]:
    """Labels in ``regions`` that are not Ghana regions, in input order."""
    return [r for r in regions if r not in GHANA_REGIONS]


def filter_by_regions(records: Sequence, regions: Sequence[str]) -> list:
    """
    Keep records whose ``region`` attribute is in ``regions``.

    An empty ``regions`` keeps everything. Filtering by region is the
    caller's job; the map view never does it.
    """
    if not regions:
        return list(records)
    wanted = set(regions)
    return [r for r in records if getattr(r, "region", None) in wanted]
