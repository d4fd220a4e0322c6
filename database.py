"""
Database layer - SQLAlchemy over DATABASE_URL (SQLite by default)
"""
from sqlalchemy import create_engine, Column, String, Integer, Float, DateTime, Boolean, ForeignKey, JSON
from sqlalchemy.orm import declarative_base, sessionmaker, relationship
from datetime import datetime, timedelta, timezone
import hashlib
import json
import os
import uuid

from mock_data import CITY_COORDINATES

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./trip_drafts.db")

_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, connect_args=_connect_args)
SessionLocal = sessionmaker(bind=engine)

Base = declarative_base()


def generate_id():
    return str(uuid.uuid4())[:8]


def utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=generate_id)
    email = Column(String, unique=True, index=True)
    first_name = Column(String)
    last_name = Column(String, default="")
    password_hash = Column(String)
    role = Column(String, default="traveler")  # traveler, agent, admin
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=utcnow)

    trips = relationship("CustomTrip", back_populates="user", cascade="all, delete-orphan")
    bookings = relationship("Booking", back_populates="user", cascade="all, delete-orphan")
    searches = relationship("SearchHistory", back_populates="user", cascade="all, delete-orphan")
    favorites = relationship("UserFavorite", back_populates="user", cascade="all, delete-orphan")
    notifications = relationship("Notification", back_populates="user", cascade="all, delete-orphan")


class CustomTrip(Base):
    __tablename__ = "custom_trips"

    id = Column(String, primary_key=True, default=generate_id)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), index=True)
    title = Column(String)
    status = Column(String, default="draft", index=True)  # draft, planned, booked, completed
    draft_data = Column(JSON, default=dict)  # the whole TripDraft, saved wholesale
    total_price = Column(Float, default=0)
    currency = Column(String, default="USD")
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="trips")
    bookings = relationship("Booking", back_populates="trip", cascade="all, delete-orphan")


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String, primary_key=True, default=generate_id)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), index=True)
    trip_id = Column(String, ForeignKey("custom_trips.id", ondelete="CASCADE"))
    booking_reference = Column(String, unique=True, index=True)
    booking_data = Column(JSON, default=dict)
    subtotal = Column(Float)
    platform_fee = Column(Float)
    total_price = Column(Float)
    currency = Column(String, default="USD")
    status = Column(String, default="pending")  # pending, confirmed, cancelled, completed
    payment_status = Column(String, default="pending")  # pending, paid, failed, refunded
    payment_session_id = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow)

    user = relationship("User", back_populates="bookings")
    trip = relationship("CustomTrip", back_populates="bookings")


class FlightCache(Base):
    __tablename__ = "flight_cache"

    id = Column(Integer, primary_key=True, autoincrement=True)
    cache_key = Column(String, unique=True, index=True)
    search_params = Column(JSON)
    results = Column(JSON)
    expires_at = Column(DateTime, index=True)
    created_at = Column(DateTime, default=utcnow)


class HotelCache(Base):
    __tablename__ = "hotel_cache"

    id = Column(Integer, primary_key=True, autoincrement=True)
    cache_key = Column(String, unique=True, index=True)
    search_params = Column(JSON)
    results = Column(JSON)
    expires_at = Column(DateTime, index=True)
    created_at = Column(DateTime, default=utcnow)


class PricingRule(Base):
    __tablename__ = "pricing_rules"

    id = Column(Integer, primary_key=True, autoincrement=True)
    rule_name = Column(String)
    rule_type = Column(String, index=True)  # flight, hotel, package
    route_pattern = Column(String, nullable=True)  # e.g. 'MAD-*' for all flights from Madrid
    markup_type = Column(String)  # percentage, fixed
    markup_value = Column(Float)
    currency = Column(String, default="USD")
    valid_from = Column(String, nullable=True)  # YYYY-MM-DD
    valid_to = Column(String, nullable=True)
    is_active = Column(Boolean, default=True, index=True)


class Location(Base):
    __tablename__ = "locations"

    id = Column(String, primary_key=True, default=generate_id)
    iata_code = Column(String, unique=True, nullable=True)
    name = Column(String, index=True)
    city = Column(String, nullable=True)
    country = Column(String)
    location_type = Column(String, default="city")  # airport, city, region
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    popularity_score = Column(Float, default=0.5)
    is_active = Column(Boolean, default=True)


class SearchHistory(Base):
    __tablename__ = "search_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True)
    search_type = Column(String)  # flight, hotel
    search_params = Column(JSON)
    results_count = Column(Integer, default=0)
    created_at = Column(DateTime, default=utcnow)

    user = relationship("User", back_populates="searches")


class UserFavorite(Base):
    __tablename__ = "user_favorites"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), index=True)
    favorite_type = Column(String)  # flight, hotel, destination
    favorite_data = Column(JSON, default=dict)
    created_at = Column(DateTime, default=utcnow)

    user = relationship("User", back_populates="favorites")


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), index=True)
    title = Column(String)
    message = Column(String)
    notification_type = Column(String, default="info")  # info, success, warning, error
    is_read = Column(Boolean, default=False)
    action_url = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow)

    user = relationship("User", back_populates="notifications")


# Search result cache, keyed by a hash of the search parameters

def cache_key(params):
    return hashlib.sha256(json.dumps(params, sort_keys=True, default=str).encode()).hexdigest()


def get_cache(db, model, params):
    row = db.query(model).filter(
        model.cache_key == cache_key(params), model.expires_at > utcnow()
    ).first()
    return row.results if row else None


def set_cache(db, model, params, results, ttl_seconds=None):
    if ttl_seconds is None:
        ttl_seconds = int(os.getenv("SEARCH_CACHE_TTL_SECONDS", "3600"))
    key = cache_key(params)
    row = db.query(model).filter(model.cache_key == key).first()
    if row is None:
        row = model(cache_key=key, search_params=params)
        db.add(row)
    row.results = results
    row.expires_at = utcnow() + timedelta(seconds=ttl_seconds)
    db.commit()


def init_db():
    """Create tables and seed locations and the default pricing rules"""
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()

    popular_cities = [
        ("Tokyo", "Japan", "TYO"),
        ("Kyoto", "Japan", "UKY"),
        ("Osaka", "Japan", "OSA"),
        ("Paris", "France", "PAR"),
        ("London", "United Kingdom", "LON"),
        ("New York", "United States", "NYC"),
        ("Madrid", "Spain", "MAD"),
        ("Barcelona", "Spain", "BCN"),
        ("Rome", "Italy", "ROM"),
        ("Bangkok", "Thailand", "BKK"),
        ("Dubai", "United Arab Emirates", "DXB"),
        ("Singapore", "Singapore", "SIN"),
        ("Sydney", "Australia", "SYD"),
        ("Amsterdam", "Netherlands", "AMS"),
        ("Berlin", "Germany", "BER"),
    ]

    for rank, (name, country, iata) in enumerate(popular_cities):
        if not db.query(Location).filter(Location.iata_code == iata).first():
            latitude, longitude = CITY_COORDINATES.get(name, (None, None))
            db.add(Location(
                iata_code=iata, name=name, city=name, country=country, location_type="city",
                latitude=latitude, longitude=longitude,
                popularity_score=round(1 - rank / len(popular_cities), 2),
            ))

    if not db.query(PricingRule).first():
        db.add(PricingRule(rule_name="Default Flight Markup", rule_type="flight", route_pattern="*",
                           markup_type="percentage", markup_value=5.0))
        db.add(PricingRule(rule_name="Default Hotel Markup", rule_type="hotel", route_pattern="*",
                           markup_type="percentage", markup_value=10.0))

    db.commit()
    db.close()

    return engine


def get_db():
    return SessionLocal()
