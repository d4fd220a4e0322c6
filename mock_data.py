"""
Mock data for flights, hotels, activities and guides - simulates external API
responses when no provider credentials are configured, plus the static tables
the lookup fallbacks serve from.
"""
import hashlib
import random
from datetime import datetime, timedelta

# Mock airline data
AIRLINES = {
    "AA": "American Airlines",
    "DL": "Delta Air Lines",
    "UA": "United Airlines",
    "LH": "Lufthansa",
    "BA": "British Airways",
    "AF": "Air France",
    "KL": "KLM",
    "EK": "Emirates",
    "QR": "Qatar Airways",
    "JL": "Japan Airlines",
    "NH": "ANA",
    "SQ": "Singapore Airlines",
    "IB": "Iberia",
    "TK": "Turkish Airlines",
}

# Airport codes mapping
AIRPORTS = {
    "Tokyo": ["NRT", "HND"],
    "Kyoto": ["KIX", "ITM"],
    "Osaka": ["KIX", "ITM"],
    "Paris": ["CDG", "ORY"],
    "London": ["LHR", "LGW", "STN"],
    "New York": ["JFK", "LGA", "EWR"],
    "Madrid": ["MAD"],
    "Barcelona": ["BCN"],
    "Rome": ["FCO", "CIA"],
    "Lisbon": ["LIS"],
    "Bangkok": ["BKK", "DMK"],
    "Dubai": ["DXB"],
    "Singapore": ["SIN"],
    "Sydney": ["SYD"],
    "Istanbul": ["IST", "SAW"],
    "Amsterdam": ["AMS"],
    "Berlin": ["BER"],
    "Prague": ["PRG"],
    "Los Angeles": ["LAX"],
    "San Francisco": ["SFO"],
}

# IATA *city* codes used by hotel searches
CITY_CODES = {
    "Tokyo": "TYO", "Kyoto": "UKY", "Osaka": "OSA", "Paris": "PAR",
    "London": "LON", "New York": "NYC", "Madrid": "MAD", "Barcelona": "BCN",
    "Rome": "ROM", "Lisbon": "LIS", "Bangkok": "BKK", "Dubai": "DXB",
    "Singapore": "SIN", "Sydney": "SYD", "Istanbul": "IST",
    "Amsterdam": "AMS", "Berlin": "BER", "Prague": "PRG",
    "Los Angeles": "LAX", "San Francisco": "SFO",
}

CITY_COORDINATES = {
    "Tokyo": (35.6762, 139.6503),
    "Kyoto": (35.0116, 135.7681),
    "Osaka": (34.6937, 135.5023),
    "Paris": (48.8566, 2.3522),
    "London": (51.5074, -0.1278),
    "New York": (40.7128, -74.0060),
    "Madrid": (40.4168, -3.7038),
    "Barcelona": (41.3874, 2.1686),
    "Rome": (41.9028, 12.4964),
    "Lisbon": (38.7223, -9.1393),
    "Bangkok": (13.7563, 100.5018),
    "Dubai": (25.2048, 55.2708),
    "Singapore": (1.3521, 103.8198),
    "Sydney": (-33.8688, 151.2093),
    "Istanbul": (41.0082, 28.9784),
    "Amsterdam": (52.3676, 4.9041),
    "Berlin": (52.5200, 13.4050),
    "Prague": (50.0755, 14.4378),
}

# Mock hotel data by city: (name, rating, base price per night, amenities)
HOTEL_TEMPLATES = {
    "Tokyo": [
        ("Hotel Gracery Shinjuku", 4.0, 120, ["wifi", "restaurant"]),
        ("Park Hyatt Tokyo", 5.0, 450, ["wifi", "pool", "spa", "gym"]),
        ("Shibuya Excel Hotel Tokyu", 4.0, 180, ["wifi", "restaurant"]),
    ],
    "Kyoto": [
        ("Hotel Granvia Kyoto", 4.0, 160, ["wifi", "restaurant"]),
        ("The Ritz-Carlton Kyoto", 5.0, 700, ["wifi", "spa", "gym"]),
        ("Piece Hostel Sanjo", 3.0, 40, ["wifi", "kitchen"]),
    ],
    "Paris": [
        ("Hotel Malte Opera", 4.0, 200, ["wifi", "breakfast"]),
        ("Le Meurice", 5.0, 800, ["wifi", "spa", "gym"]),
        ("Generator Paris", 3.0, 60, ["wifi", "kitchen"]),
    ],
    "London": [
        ("The Strand Palace", 4.0, 180, ["wifi", "restaurant"]),
        ("The Savoy", 5.0, 600, ["wifi", "spa", "pool", "gym"]),
        ("YHA London Central", 3.0, 40, ["wifi", "kitchen"]),
    ],
    "Madrid": [
        ("Hotel Regina", 4.0, 150, ["wifi", "breakfast"]),
        ("Four Seasons Madrid", 5.0, 650, ["wifi", "spa", "pool", "gym"]),
        ("The Hat Madrid", 3.0, 45, ["wifi", "kitchen"]),
    ],
}

DEFAULT_HOTELS = [
    ("City Center Hotel", 4.0, 120, ["wifi", "restaurant"]),
    ("Grand Luxury Hotel", 5.0, 350, ["wifi", "spa", "pool", "gym"]),
    ("Boutique Hotel", 4.0, 150, ["wifi", "breakfast"]),
    ("Budget Inn", 3.0, 60, ["wifi"]),
]

# (name, duration, base price, category)
ACTIVITY_TEMPLATES = [
    ("Old Town Walking Tour", "3 hours", 35, "tour"),
    ("Food Market Tasting", "2.5 hours", 65, "food"),
    ("Museum Skip-the-Line Pass", "4 hours", 28, "culture"),
    ("Sunset River Cruise", "2 hours", 45, "sightseeing"),
    ("Cooking Class with a Local Chef", "3.5 hours", 90, "food"),
]

POINTS_OF_INTEREST = {
    "Tokyo": ["Senso-ji Temple", "Meiji Shrine", "Shibuya Crossing", "Tokyo Skytree"],
    "Kyoto": ["Fushimi Inari Taisha", "Kinkaku-ji", "Arashiyama Bamboo Grove", "Gion"],
    "Paris": ["Louvre Museum", "Eiffel Tower", "Musee d'Orsay", "Montmartre"],
    "London": ["British Museum", "Tower of London", "Borough Market", "Tate Modern"],
    "Madrid": ["Prado Museum", "Retiro Park", "Royal Palace", "Mercado de San Miguel"],
}

GUIDE_NAMES = ["Aiko Tanaka", "Luis Ortega", "Claire Dubois", "Sam Whitfield", "Marta Rossi"]
GUIDE_LANGUAGES = ["English", "Spanish", "French", "Japanese", "Italian", "German"]
GUIDE_SPECIALTIES = ["history", "food", "architecture", "nightlife", "art", "nature"]

# Exchange rates against USD, used when the live rates API is unreachable
FALLBACK_RATES = {
    "USD": 1.0,
    "EUR": 0.85,
    "GBP": 0.73,
    "JPY": 110.0,
    "CAD": 1.25,
    "AUD": 1.35,
    "CHF": 0.92,
    "CNY": 6.45,
    "INR": 74.5,
    "THB": 33.0,
}

# (passport country, destination country) -> requirement; anything else is
# "check_embassy"
VISA_REQUIREMENTS = {
    ("US", "JP"): {"requirement": "visa_free", "max_stay_days": 90},
    ("US", "FR"): {"requirement": "visa_free", "max_stay_days": 90},
    ("US", "ES"): {"requirement": "visa_free", "max_stay_days": 90},
    ("US", "GB"): {"requirement": "visa_free", "max_stay_days": 180},
    ("US", "TH"): {"requirement": "visa_free", "max_stay_days": 30},
    ("US", "IN"): {"requirement": "e_visa", "max_stay_days": 60},
    ("US", "CN"): {"requirement": "visa_required", "max_stay_days": None},
    ("GB", "JP"): {"requirement": "visa_free", "max_stay_days": 90},
    ("GB", "US"): {"requirement": "esta", "max_stay_days": 90},
    ("IN", "TH"): {"requirement": "visa_on_arrival", "max_stay_days": 15},
    ("IN", "JP"): {"requirement": "visa_required", "max_stay_days": None},
}

COUNTRY_CITIES = {
    "Japan": ["Tokyo", "Kyoto", "Osaka", "Sapporo", "Hiroshima", "Nara"],
    "France": ["Paris", "Lyon", "Nice", "Marseille", "Bordeaux"],
    "Spain": ["Madrid", "Barcelona", "Seville", "Valencia", "Granada"],
    "Italy": ["Rome", "Florence", "Venice", "Milan", "Naples"],
    "United Kingdom": ["London", "Edinburgh", "Manchester", "Bath"],
    "United States": ["New York", "Los Angeles", "San Francisco", "Chicago", "Miami"],
    "Thailand": ["Bangkok", "Chiang Mai", "Phuket", "Krabi"],
}


def _rng(*parts):
    """Seeded RNG so the same search always yields the same mock results."""
    seed = hashlib.sha256("|".join(str(p) for p in parts).encode()).hexdigest()
    return random.Random(int(seed[:16], 16))


def get_airport_for_city(city_name):
    """Get airport code for a city"""
    for city, airports in AIRPORTS.items():
        if city.lower() in city_name.lower() or city_name.lower() in city.lower():
            return airports[0]
    return city_name[:3].upper()


def get_city_code(city_name):
    for city, code in CITY_CODES.items():
        if city.lower() == city_name.strip().lower():
            return code
    return city_name.strip()[:3].upper()


def search_mock_cities(keyword):
    """Keyword match over the known cities, shaped like a city-search result."""
    keyword = keyword.strip().lower()
    results = []
    for country, cities in COUNTRY_CITIES.items():
        for city in cities:
            if keyword in city.lower():
                results.append({
                    "name": city,
                    "country": country,
                    "iata_code": CITY_CODES.get(city, city[:3].upper()),
                })
    return results


def generate_mock_flights(from_city, to_city, departure_date, return_date=None, num_travelers=1):
    """Generate mock flight options"""
    rng = _rng("flights", from_city, to_city, departure_date, return_date, num_travelers)
    from_airport = get_airport_for_city(from_city)
    to_airport = get_airport_for_city(to_city)
    base_price = rng.randint(200, 800)

    legs = [("outbound", from_airport, to_airport, departure_date)]
    if return_date:
        legs.append(("return", to_airport, from_airport, return_date))

    flights = []
    for flight_type, origin, destination, day in legs:
        for i in range(3):
            airline_code = rng.choice(sorted(AIRLINES))
            flight_num = f"{airline_code}{rng.randint(100, 999)}"
            dep_datetime = datetime.strptime(day, "%Y-%m-%d").replace(
                hour=rng.randint(6, 22), minute=rng.choice([0, 15, 30, 45])
            )
            duration = rng.randint(60, 14 * 60)
            flights.append({
                "id": f"flight_{flight_type}_{i}",
                "flight_type": flight_type,
                "airline": AIRLINES[airline_code],
                "flight_number": flight_num,
                "from_airport": origin,
                "to_airport": destination,
                "departure_datetime": dep_datetime.isoformat(),
                "arrival_datetime": (dep_datetime + timedelta(minutes=duration)).isoformat(),
                "duration_minutes": duration,
                "price": round(base_price * rng.uniform(0.7, 1.4)) * num_travelers,
                "currency": "USD",
            })
    return flights


def generate_mock_accommodations(city_name, check_in, check_out, num_guests=1):
    """Generate mock hotel options"""
    rng = _rng("hotels", city_name, check_in, check_out, num_guests)
    nights = (datetime.strptime(check_out, "%Y-%m-%d") - datetime.strptime(check_in, "%Y-%m-%d")).days

    accommodations = []
    for i, (name, rating, base_price, amenities) in enumerate(HOTEL_TEMPLATES.get(city_name, DEFAULT_HOTELS)):
        price_per_night = round(base_price * rng.uniform(0.8, 1.3))
        accommodations.append({
            "id": f"acc_{i}",
            "name": name,
            "city": city_name,
            "address": f"{rng.randint(1, 200)} Main Street, {city_name}",
            "check_in_date": check_in,
            "check_out_date": check_out,
            "price_per_night": price_per_night,
            "total_price": price_per_night * max(nights, 1),
            "currency": "USD",
            "rating": rating,
            "amenities": amenities,
        })
    return accommodations


def generate_mock_activities(city_name, activity_date="", preferences=None):
    """Generate bookable tours and activities for a city."""
    rng = _rng("activities", city_name, activity_date)
    wanted = {p.lower() for p in preferences or []}
    activities = []
    for i, (name, duration, base_price, category) in enumerate(ACTIVITY_TEMPLATES):
        activities.append({
            "id": f"act_{i}",
            "name": f"{city_name} {name}",
            "category": category,
            "duration": duration,
            "price": round(base_price * rng.uniform(0.9, 1.2), 2),
            "currency": "USD",
            "location": city_name,
            "activity_date": activity_date,
            "rating": round(rng.uniform(4.0, 5.0), 1),
        })
    if wanted:
        activities.sort(key=lambda a: a["category"] not in wanted)
    return activities


def generate_mock_pois(city_name):
    """Free points of interest for a city."""
    names = POINTS_OF_INTEREST.get(city_name, [f"{city_name} City Center", f"{city_name} Old Town"])
    return [
        {"id": f"poi_{i}", "name": name, "location": city_name, "price": 0, "currency": "USD"}
        for i, name in enumerate(names)
    ]


def generate_mock_guides(city_name):
    """Local guides available in a city."""
    rng = _rng("guides", city_name)
    guides = []
    for i, name in enumerate(rng.sample(GUIDE_NAMES, 3)):
        guides.append({
            "id": f"guide_{i}",
            "name": name,
            "location": city_name,
            "languages": rng.sample(GUIDE_LANGUAGES, 2),
            "specialties": rng.sample(GUIDE_SPECIALTIES, 2),
            "rating": round(rng.uniform(4.2, 5.0), 1),
            "price": rng.choice([80, 120, 150, 200]),
            "currency": "USD",
        })
    return guides
