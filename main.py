"""FastAPI Backend - Trip Draft Wizard"""
import logging
import os
from dataclasses import asdict
from datetime import date, datetime, timedelta, timezone

# Load .env before anything else
from dotenv import load_dotenv
load_dotenv()

import stripe

from fastapi import FastAPI, HTTPException, Depends, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from fastapi.security import OAuth2PasswordBearer
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from passlib.context import CryptContext
from jose import JWTError, jwt

from database import (
    init_db, get_db, get_cache, set_cache,
    User, CustomTrip, Booking, FlightCache, HotelCache, PricingRule, Location,
    SearchHistory, UserFavorite, Notification,
)
from mock_data import get_city_code
from TripDraft import (
    DraftActionError, DraftValidationError, HotelConflictError, TripDraft, component_from_dict,
)
from wizard import ActivitySearch, FlightSearch, HotelSearch, lookups
from wizard.costs import (
    booking_total, cost_summary, generate_booking_reference, platform_fee, price_with_rules,
)
from wizard.day_plan import build_day_plan, trip_calendar
from wizard.lookups import ProviderError
from wizard.reducer import AddComponent, ClearComponents, ParseDestinations, RemoveComponent, action_from_dict, reduce
from wizard.store import DraftStore

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize database
init_db()

# FastAPI app
app = FastAPI(
    title="Trip Draft Wizard API",
    description="Custom trip builder - drafts, route planning, search and booking",
    version="1.0.0"
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Stripe configuration
stripe.api_key = os.getenv("STRIPE_SECRET_KEY", "")
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

# Security
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24)))
REFRESH_TOKEN_EXPIRE_DAYS = 7

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/auth/login", auto_error=False)

EDITABLE_STATUSES = ("draft", "planned")


# Error handling - every error body is {"success": false, "message": ...}

@app.exception_handler(HTTPException)
async def http_error_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    problems = "; ".join(
        f"{'.'.join(str(p) for p in err['loc'][1:]) or 'body'}: {err['msg']}" for err in exc.errors()
    )
    return JSONResponse(status_code=400, content={"success": False, "message": problems})


@app.exception_handler(HotelConflictError)
async def hotel_conflict_handler(request: Request, exc: HotelConflictError):
    return JSONResponse(
        status_code=409,
        content={
            "success": False,
            "message": str(exc),
            "conflicts": [c.to_dict() for c in exc.conflicts],
        },
    )


@app.exception_handler(DraftActionError)
async def draft_action_handler(request: Request, exc: DraftActionError):
    return JSONResponse(status_code=400, content={"success": False, "message": str(exc)})


@app.exception_handler(DraftValidationError)
async def draft_validation_handler(request: Request, exc: DraftValidationError):
    return JSONResponse(status_code=400, content={"success": False, "message": str(exc)})


@app.exception_handler(ProviderError)
async def provider_error_handler(request: Request, exc: ProviderError):
    return JSONResponse(status_code=exc.status_code, content={"success": False, "message": exc.message})


# Pydantic models
class UserCreate(BaseModel):
    email: str
    password: str = Field(min_length=6)
    first_name: str = Field(min_length=1)
    last_name: str = ""

class UserLogin(BaseModel):
    email: str
    password: str

class RefreshRequest(BaseModel):
    refresh_token: str = ""

class HotelSearchRequest(BaseModel):
    city: str = ""
    check_in: str = ""
    check_out: str = ""
    adults: int = Field(1, ge=1)
    rooms: int = Field(1, ge=1)

class FlightSearchRequest(BaseModel):
    origin: str
    destination: str
    departure_date: str
    return_date: str = ""
    adults: int = Field(1, ge=1)

class ActivitySearchRequest(BaseModel):
    city: str
    activity_date: str = ""
    preferences: List[str] = []
    include_pois: bool = True

class FavoriteCreate(BaseModel):
    favorite_type: str
    favorite_data: Dict[str, Any]


# Helper functions
def get_session():
    db = get_db()
    try:
        yield db
    finally:
        db.close()

def hash_password(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)

def create_token(user: User, token_type: str = "access", expires_delta: Optional[timedelta] = None):
    if expires_delta is None:
        if token_type == "refresh":
            expires_delta = timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS)
        else:
            expires_delta = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode = {
        "sub": user.id,
        "email": user.email,
        "type": token_type,
        "exp": datetime.now(timezone.utc) + expires_delta,
    }
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)

def decode_token(token: str, token_type: str = "access") -> dict:
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    if payload.get("type") != token_type:
        raise HTTPException(status_code=401, detail="Invalid token type")
    return payload

def get_current_user(token: Optional[str] = Depends(oauth2_scheme), db=Depends(get_session)) -> User:
    if token is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access token required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    payload = decode_token(token, "access")
    user = db.query(User).filter(User.id == payload.get("sub"), User.is_active == True).first()  # noqa: E712
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    return user

def get_optional_user(token: Optional[str] = Depends(oauth2_scheme), db=Depends(get_session)) -> Optional[User]:
    """Searches work anonymously; a valid token only attributes them to a user."""
    if token is None:
        return None
    try:
        payload = decode_token(token, "access")
    except HTTPException:
        logger.debug("Ignoring unusable token on an anonymous endpoint")
        return None
    return db.query(User).filter(User.id == payload.get("sub"), User.is_active == True).first()  # noqa: E712

def user_response(user: User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }

def token_response(user: User, message: str) -> dict:
    return {
        "success": True,
        "message": message,
        "user": user_response(user),
        "access_token": create_token(user, "access"),
        "refresh_token": create_token(user, "refresh"),
        "token_type": "bearer",
    }


# Draft <-> row helpers

def draft_from_payload(payload: Dict[str, Any]) -> TripDraft:
    try:
        return TripDraft.from_dict(payload or {}).validate()
    except DraftValidationError:
        raise
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise HTTPException(status_code=400, detail=f"Invalid trip draft: {e}")

def load_draft(trip: CustomTrip) -> TripDraft:
    draft = TripDraft.from_dict(trip.draft_data or {})
    draft.id = trip.id
    draft.status = trip.status
    draft.last_saved = trip.updated_at.isoformat(timespec="seconds") if trip.updated_at else ""
    return draft

def store_draft(db, trip: CustomTrip, draft: TripDraft):
    """Save the whole draft over whatever is stored (last save wins)."""
    data = draft.to_dict(encode_json=True)
    for key in ("id", "status", "last_saved"):
        data.pop(key, None)
    trip.title = draft.title
    trip.currency = draft.currency
    trip.total_price = cost_summary(draft.components, draft.number_of_travelers, draft.currency).total
    trip.draft_data = data
    trip.updated_at = datetime.now(timezone.utc).replace(tzinfo=None)
    db.commit()
    db.refresh(trip)

def trip_response(trip: CustomTrip, include_draft: bool = True) -> dict:
    body = {
        "id": trip.id,
        "title": trip.title,
        "status": trip.status,
        "total_price": trip.total_price,
        "currency": trip.currency,
        "created_at": trip.created_at.isoformat() if trip.created_at else None,
        "updated_at": trip.updated_at.isoformat() if trip.updated_at else None,
    }
    if include_draft:
        body["draft"] = load_draft(trip).to_dict(encode_json=True)
    return body

def get_trip(db, trip_id: str, user: User) -> CustomTrip:
    trip = db.query(CustomTrip).filter(CustomTrip.id == trip_id, CustomTrip.user_id == user.id).first()
    if not trip:
        raise HTTPException(status_code=404, detail="Trip not found")
    return trip

def require_editable(trip: CustomTrip):
    if trip.status not in EDITABLE_STATUSES:
        raise HTTPException(status_code=400, detail=f"Trip is {trip.status} and can no longer be changed")

def apply_action(db, trip: CustomTrip, action) -> dict:
    """Run one wizard action through the store and save the result."""
    require_editable(trip)
    store = DraftStore(load_draft(trip))
    if not store.dispatch(action):
        if store.pending_conflict is not None:
            raise store.pending_conflict
        raise HTTPException(status_code=400, detail=store.notices[-1].message)
    store_draft(db, trip, store.draft)
    return {
        "success": True,
        "trip": trip_response(trip),
        "notices": [asdict(n) for n in store.drain_notices()],
    }

def active_rules(db, rule_type: str):
    return db.query(PricingRule).filter(
        PricingRule.rule_type == rule_type, PricingRule.is_active == True  # noqa: E712
    ).all()

def priced_results(db, results: List[dict], rule_type: str, route: str) -> List[dict]:
    """Apply the pricing rules active right now to raw (cached) provider results."""
    rules = active_rules(db, rule_type)
    priced = []
    for item in results:
        item = dict(item)
        item["price"] = price_with_rules(item["price"], rules, rule_type, route)
        priced.append(item)
    return priced

def record_search(db, user: Optional[User], search_type: str, params: dict, results_count: int):
    db.add(SearchHistory(
        user_id=user.id if user else None,
        search_type=search_type,
        search_params=params,
        results_count=results_count,
    ))
    db.commit()

def notify_user(db, user_id: str, title: str, message: str, notification_type: str = "info",
                action_url: Optional[str] = None):
    db.add(Notification(user_id=user_id, title=title, message=message,
                        notification_type=notification_type, action_url=action_url))


# Auth endpoints
@app.post("/api/auth/register", status_code=201)
def register(user: UserCreate, db=Depends(get_session)):
    email = user.email.strip().lower()
    if "@" not in email:
        raise HTTPException(status_code=400, detail="A valid email is required")

    # Check if user exists
    existing = db.query(User).filter(User.email == email).first()
    if existing:
        raise HTTPException(status_code=409, detail="User with this email already exists")

    db_user = User(
        email=email,
        first_name=user.first_name,
        last_name=user.last_name,
        password_hash=hash_password(user.password),
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    logger.info("Registered user %s", db_user.id)
    return token_response(db_user, "User registered successfully")

@app.post("/api/auth/login")
def login(user: UserLogin, db=Depends(get_session)):
    db_user = db.query(User).filter(User.email == user.email.strip().lower()).first()
    if not db_user or not db_user.is_active or not verify_password(user.password, db_user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid email or password")
    return token_response(db_user, "Login successful")

@app.get("/api/auth/verify")
def verify(current_user: User = Depends(get_current_user)):
    return {"success": True, "message": "Token is valid", "user": user_response(current_user)}

@app.post("/api/auth/refresh")
def refresh(body: RefreshRequest, db=Depends(get_session)):
    if not body.refresh_token:
        raise HTTPException(status_code=401, detail="Refresh token is required")
    payload = decode_token(body.refresh_token, "refresh")
    db_user = db.query(User).filter(User.id == payload.get("sub")).first()
    if not db_user or not db_user.is_active:
        raise HTTPException(status_code=401, detail="Invalid or expired refresh token")
    response = token_response(db_user, "Token refreshed successfully")
    response.pop("user")
    return response

@app.post("/api/auth/logout")
def logout(current_user: User = Depends(get_current_user)):
    # Tokens are stateless; the client drops them
    return {"success": True, "message": "Logout successful. Please remove token from client storage."}


# Custom trip endpoints
@app.post("/api/trips/custom", status_code=201)
def create_trip(payload: Dict[str, Any], current_user: User = Depends(get_current_user), db=Depends(get_session)):
    draft = draft_from_payload(payload)
    if not draft.title.strip():
        raise HTTPException(status_code=400, detail="Please provide a trip title to start.")
    if not draft.itinerary and draft.destinations:
        draft = reduce(draft, ParseDestinations())

    trip = CustomTrip(user_id=current_user.id, status="draft")
    db.add(trip)
    store_draft(db, trip, draft)
    logger.info("Created trip %s for user %s", trip.id, current_user.id)
    return {"success": True, "message": "Trip created", "trip": trip_response(trip)}

@app.get("/api/trips/custom")
def list_trips(current_user: User = Depends(get_current_user), db=Depends(get_session)):
    trips = db.query(CustomTrip).filter(
        CustomTrip.user_id == current_user.id
    ).order_by(CustomTrip.updated_at.desc()).all()
    return {"success": True, "trips": [trip_response(t, include_draft=False) for t in trips]}

@app.get("/api/trips/custom/{trip_id}")
def read_trip(trip_id: str, current_user: User = Depends(get_current_user), db=Depends(get_session)):
    return {"success": True, "trip": trip_response(get_trip(db, trip_id, current_user))}

@app.put("/api/trips/custom/{trip_id}")
def save_trip(trip_id: str, payload: Dict[str, Any],
              current_user: User = Depends(get_current_user), db=Depends(get_session)):
    trip = get_trip(db, trip_id, current_user)
    require_editable(trip)
    draft = draft_from_payload(payload)
    if not draft.title.strip():
        raise HTTPException(status_code=400, detail="Please provide a trip title to start.")
    if payload.get("status") in EDITABLE_STATUSES:
        trip.status = payload["status"]
    store_draft(db, trip, draft)
    return {"success": True, "message": "Trip saved", "trip": trip_response(trip)}

@app.delete("/api/trips/custom/{trip_id}")
def delete_trip(trip_id: str, current_user: User = Depends(get_current_user), db=Depends(get_session)):
    trip = get_trip(db, trip_id, current_user)
    db.delete(trip)
    db.commit()
    return {"success": True, "message": "Trip deleted"}

@app.post("/api/trips/custom/{trip_id}/actions")
def trip_action(trip_id: str, payload: Dict[str, Any],
                current_user: User = Depends(get_current_user), db=Depends(get_session)):
    """Apply one wizard action, e.g. {"type": "REORDER_STOP", "from_index": 0, "to_index": 2}."""
    trip = get_trip(db, trip_id, current_user)
    return apply_action(db, trip, action_from_dict(payload))

@app.post("/api/trips/custom/{trip_id}/components")
def add_component(trip_id: str, payload: Dict[str, Any], replace: bool = False,
                  current_user: User = Depends(get_current_user), db=Depends(get_session)):
    trip = get_trip(db, trip_id, current_user)
    component = component_from_dict(payload)
    before = {c.id for c in load_draft(trip).components}
    result = apply_action(db, trip, AddComponent(component, confirm_replace=replace))
    after = {c["id"] for c in result["trip"]["draft"]["components"]}
    result["replaced"] = sorted(before - after)
    return result

@app.delete("/api/trips/custom/{trip_id}/components/{component_id}")
def remove_component(trip_id: str, component_id: str,
                     current_user: User = Depends(get_current_user), db=Depends(get_session)):
    trip = get_trip(db, trip_id, current_user)
    return apply_action(db, trip, RemoveComponent(component_id))

@app.delete("/api/trips/custom/{trip_id}/components")
def clear_components(trip_id: str, component_type: Optional[str] = None,
                     current_user: User = Depends(get_current_user), db=Depends(get_session)):
    trip = get_trip(db, trip_id, current_user)
    return apply_action(db, trip, ClearComponents(component_type))

@app.get("/api/trips/custom/{trip_id}/cost")
def trip_cost(trip_id: str, current_user: User = Depends(get_current_user), db=Depends(get_session)):
    draft = load_draft(get_trip(db, trip_id, current_user))
    summary = cost_summary(draft.components, draft.number_of_travelers, draft.currency).to_dict()
    summary["platform_fee"] = platform_fee(summary["total"])
    summary["total_with_fees"] = booking_total(summary["total"])
    if draft.budget_amount:
        summary["budget_amount"] = draft.budget_amount
        summary["budget_remaining"] = round(draft.budget_amount - summary["total"], 2)
    return {"success": True, "cost": summary}

@app.get("/api/trips/custom/{trip_id}/day-plan")
def trip_day_plan(trip_id: str, current_user: User = Depends(get_current_user), db=Depends(get_session)):
    draft = load_draft(get_trip(db, trip_id, current_user))
    return {"success": True, "days": [d.to_dict() for d in build_day_plan(draft)]}

@app.get("/api/trips/custom/{trip_id}/ical")
def trip_ical(trip_id: str, current_user: User = Depends(get_current_user), db=Depends(get_session)):
    """Download an iCal (.ics) file for the trip."""
    draft = load_draft(get_trip(db, trip_id, current_user))
    safe_title = (draft.title or "trip").replace(" ", "_")
    return Response(
        content=trip_calendar(draft),
        media_type="text/calendar",
        headers={"Content-Disposition": f'attachment; filename="{safe_title}.ics"'},
    )


# Booking
def confirm_booking(db, trip: CustomTrip, booking: Booking, paid: bool):
    draft = load_draft(trip)
    today = date.today().isoformat()
    for component in draft.components:
        component.status = "booked"
        component.booking_date = today
    booking.status = "confirmed"
    booking.payment_status = "paid" if paid else "pending"
    trip.status = "booked"
    notify_user(
        db, trip.user_id, "Trip booked",
        f"{trip.title} is confirmed. Booking reference {booking.booking_reference}.",
        notification_type="success", action_url=f"{FRONTEND_URL}/trips/{trip.id}",
    )
    store_draft(db, trip, draft)

@app.post("/api/trips/custom/{trip_id}/book")
def book_trip(trip_id: str, current_user: User = Depends(get_current_user), db=Depends(get_session)):
    trip = get_trip(db, trip_id, current_user)
    if trip.status not in EDITABLE_STATUSES:
        raise HTTPException(status_code=400, detail=f"Trip is {trip.status} and cannot be booked")
    draft = load_draft(trip)
    if not draft.components:
        raise HTTPException(status_code=400, detail="Trip has no components and cannot be booked.")

    summary = cost_summary(draft.components, draft.number_of_travelers, draft.currency)
    fee = platform_fee(summary.total)
    booking = Booking(
        user_id=current_user.id,
        trip_id=trip.id,
        booking_reference=generate_booking_reference(),
        booking_data={"components": [c.to_dict() for c in draft.components], "cost": summary.to_dict()},
        subtotal=summary.total,
        platform_fee=fee,
        total_price=booking_total(summary.total, fee),
        currency=summary.currency,
    )
    db.add(booking)
    db.commit()
    db.refresh(booking)

    booking_info = {
        "booking_reference": booking.booking_reference,
        "subtotal": booking.subtotal,
        "platform_fee": booking.platform_fee,
        "total_price": booking.total_price,
        "currency": booking.currency,
    }

    if not stripe.api_key:
        # Stripe not configured - confirm straight away
        confirm_booking(db, trip, booking, paid=False)
        logger.info("Trip %s booked without payment (%s)", trip.id, booking.booking_reference)
        return {"success": True, "fallback": True, "booking": {**booking_info, "status": booking.status},
                "trip": trip_response(trip)}

    try:
        session = stripe.checkout.Session.create(
            payment_method_types=["card"],
            line_items=[{
                "price_data": {
                    "currency": (booking.currency or "USD").lower(),
                    "unit_amount": int(round(booking.total_price * 100)),
                    "product_data": {
                        "name": f"Trip: {trip.title}",
                        "description": f"Booking {booking.booking_reference}",
                    },
                },
                "quantity": 1,
            }],
            mode="payment",
            success_url=f"{FRONTEND_URL}/trips/{trip.id}/booked?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{FRONTEND_URL}/trips/{trip.id}",
            metadata={"trip_id": trip.id, "booking_reference": booking.booking_reference},
        )
    except stripe.StripeError as e:
        logger.error("Stripe checkout for trip %s failed: %s", trip.id, e)
        booking.status = "cancelled"
        booking.payment_status = "failed"
        db.commit()
        raise HTTPException(status_code=502, detail="Payment provider error, please try again")

    booking.payment_session_id = session.id
    db.commit()
    return {"success": True, "url": session.url, "booking": {**booking_info, "status": booking.status}}

@app.get("/api/trips/custom/{trip_id}/booking/verify")
def verify_booking(trip_id: str, session_id: str = "",
                   current_user: User = Depends(get_current_user), db=Depends(get_session)):
    """Confirm a booking once the Stripe Checkout session is paid."""
    trip = get_trip(db, trip_id, current_user)
    booking = db.query(Booking).filter(
        Booking.trip_id == trip.id, Booking.payment_session_id == session_id
    ).first()
    if not session_id or not booking:
        raise HTTPException(status_code=404, detail="Booking not found")

    if booking.status != "confirmed" and stripe.api_key:
        try:
            session = stripe.checkout.Session.retrieve(session_id)
        except stripe.StripeError as e:
            logger.error("Stripe session lookup %s failed: %s", session_id, e)
            raise HTTPException(status_code=502, detail="Payment provider error, please try again")
        if session.payment_status == "paid":
            confirm_booking(db, trip, booking, paid=True)

    return {"success": True, "booking_reference": booking.booking_reference,
            "status": booking.status, "payment_status": booking.payment_status}


# Hotel endpoints
@app.get("/api/hotels/status")
def hotels_status():
    return {"success": True, **HotelSearch.status()}

@app.get("/api/hotels/cities/search")
def hotel_city_search(q: str = "", db=Depends(get_session)):
    results = HotelSearch.search_cities(q)
    known = {r["name"].lower() for r in results}
    for location in db.query(Location).filter(
        Location.location_type == "city", Location.name.ilike(f"%{q.strip()}%")
    ).order_by(Location.popularity_score.desc()).limit(10):
        if location.name.lower() not in known:
            results.append({"name": location.name, "country": location.country, "iata_code": location.iata_code})
    return {"success": True, "cities": results}

@app.post("/api/hotels/search")
def hotel_search(body: HotelSearchRequest, db=Depends(get_session),
                 current_user: Optional[User] = Depends(get_optional_user)):
    params = body.model_dump()
    # The cache holds raw provider prices; markup is applied per request
    results = get_cache(db, HotelCache, params)
    if results is None:
        components = HotelSearch.search(body.city, body.check_in, body.check_out, body.adults, body.rooms)
        results = [c.to_dict() for c in components]
        set_cache(db, HotelCache, params, results)
    hotels = priced_results(db, results, "hotel", get_city_code(body.city))
    record_search(db, current_user, "hotel", params, len(hotels))
    return {"success": True, "count": len(hotels), "hotels": hotels}


# Flight endpoints
@app.post("/api/flights/search")
def flight_search(body: FlightSearchRequest, db=Depends(get_session),
                  current_user: Optional[User] = Depends(get_optional_user)):
    params = body.model_dump()
    results = get_cache(db, FlightCache, params)
    if results is None:
        components = FlightSearch.search(
            body.origin, body.destination, body.departure_date, body.return_date, body.adults
        )
        results = [c.to_dict() for c in components]
        set_cache(db, FlightCache, params, results)
    route = f"{FlightSearch.airport_code(body.origin)}-{FlightSearch.airport_code(body.destination)}"
    flights = priced_results(db, results, "flight", route)
    record_search(db, current_user, "flight", params, len(flights))
    return {"success": True, "count": len(flights), "flights": flights}


# Search history and locations
@app.get("/api/search/history")
def search_history(limit: int = Query(20, ge=1, le=100),
                   current_user: User = Depends(get_current_user), db=Depends(get_session)):
    rows = db.query(SearchHistory).filter(SearchHistory.user_id == current_user.id).order_by(
        SearchHistory.created_at.desc(), SearchHistory.id.desc()
    ).limit(limit).all()
    return {"success": True, "searches": [
        {
            "id": row.id,
            "search_type": row.search_type,
            "search_params": row.search_params,
            "results_count": row.results_count,
            "created_at": row.created_at.isoformat() if row.created_at else None,
        }
        for row in rows
    ]}

@app.get("/api/search/locations")
def location_suggestions(q: str = "", limit: int = Query(10, ge=1, le=50), db=Depends(get_session)):
    q = q.strip()
    if len(q) < 2:
        raise HTTPException(status_code=400, detail="Search query must be at least 2 characters")
    pattern = f"%{q}%"
    rows = db.query(Location).filter(
        Location.is_active == True,  # noqa: E712
        Location.name.ilike(pattern) | Location.country.ilike(pattern) | Location.iata_code.ilike(q),
    ).order_by(Location.popularity_score.desc()).limit(limit).all()
    return {"success": True, "locations": [
        {
            "id": row.id,
            "name": row.name,
            "country": row.country,
            "iata_code": row.iata_code,
            "type": row.location_type,
            "latitude": row.latitude,
            "longitude": row.longitude,
        }
        for row in rows
    ]}


# Favorites
FAVORITE_TYPES = ("flight", "hotel", "destination")

def favorite_response(row: UserFavorite) -> dict:
    return {
        "id": row.id,
        "favorite_type": row.favorite_type,
        "favorite_data": row.favorite_data,
        "created_at": row.created_at.isoformat() if row.created_at else None,
    }

@app.get("/api/favorites")
def list_favorites(favorite_type: Optional[str] = None,
                   current_user: User = Depends(get_current_user), db=Depends(get_session)):
    query = db.query(UserFavorite).filter(UserFavorite.user_id == current_user.id)
    if favorite_type:
        query = query.filter(UserFavorite.favorite_type == favorite_type)
    rows = query.order_by(UserFavorite.created_at.desc(), UserFavorite.id.desc()).all()
    return {"success": True, "favorites": [favorite_response(r) for r in rows]}

@app.post("/api/favorites", status_code=201)
def add_favorite(body: FavoriteCreate, current_user: User = Depends(get_current_user), db=Depends(get_session)):
    if body.favorite_type not in FAVORITE_TYPES:
        raise HTTPException(status_code=400, detail=f"favorite_type must be one of {', '.join(FAVORITE_TYPES)}")
    row = UserFavorite(user_id=current_user.id, favorite_type=body.favorite_type, favorite_data=body.favorite_data)
    db.add(row)
    db.commit()
    db.refresh(row)
    return {"success": True, "favorite": favorite_response(row)}

@app.delete("/api/favorites/{favorite_id}")
def remove_favorite(favorite_id: int, current_user: User = Depends(get_current_user), db=Depends(get_session)):
    row = db.query(UserFavorite).filter(
        UserFavorite.id == favorite_id, UserFavorite.user_id == current_user.id
    ).first()
    if not row:
        raise HTTPException(status_code=404, detail="Favorite not found")
    db.delete(row)
    db.commit()
    return {"success": True, "message": "Favorite removed"}


# Notifications
@app.get("/api/notifications")
def list_notifications(unread_only: bool = False,
                       current_user: User = Depends(get_current_user), db=Depends(get_session)):
    query = db.query(Notification).filter(Notification.user_id == current_user.id)
    if unread_only:
        query = query.filter(Notification.is_read == False)  # noqa: E712
    rows = query.order_by(Notification.created_at.desc(), Notification.id.desc()).all()
    return {"success": True, "notifications": [
        {
            "id": row.id,
            "title": row.title,
            "message": row.message,
            "type": row.notification_type,
            "is_read": row.is_read,
            "action_url": row.action_url,
            "created_at": row.created_at.isoformat() if row.created_at else None,
        }
        for row in rows
    ]}

@app.post("/api/notifications/{notification_id}/read")
def mark_notification_read(notification_id: int,
                           current_user: User = Depends(get_current_user), db=Depends(get_session)):
    row = db.query(Notification).filter(
        Notification.id == notification_id, Notification.user_id == current_user.id
    ).first()
    if not row:
        raise HTTPException(status_code=404, detail="Notification not found")
    row.is_read = True
    db.commit()
    return {"success": True, "message": "Notification marked as read"}


# Activities, POIs and guides
@app.post("/api/activities/search")
def activity_search(body: ActivitySearchRequest):
    activities = ActivitySearch.search(body.city, body.activity_date, body.preferences)
    pois = ActivitySearch.search_pois(body.city, body.activity_date) if body.include_pois else []
    return {
        "success": True,
        "activities": [a.to_dict() for a in activities],
        "pois": [p.to_dict() for p in pois],
    }

@app.get("/api/guides/search")
def guide_search(city: str = Query("")):
    if not city.strip():
        raise HTTPException(status_code=400, detail="city is required")
    return {"success": True, "guides": [g.to_dict() for g in ActivitySearch.search_guides(city)]}


# Lookups (live provider with static fallback)
@app.get("/api/lookups/currency")
def currency_rates(base: str = "USD"):
    return {"success": True, **lookups.get_exchange_rates(base)}

@app.get("/api/lookups/convert")
def currency_convert(amount: float, from_currency: str = "USD", to_currency: str = "USD"):
    if amount < 0:
        raise HTTPException(status_code=400, detail="amount cannot be negative")
    return {"success": True, **lookups.convert(amount, from_currency, to_currency)}

@app.get("/api/lookups/visa")
def visa_requirements(passport: str, destination: str):
    return {"success": True, **lookups.get_visa_requirements(passport, destination)}

@app.get("/api/lookups/cities")
def country_cities(country: str = ""):
    return {"success": True, **lookups.get_cities(country)}


@app.get("/health")
def health():
    return {"status": "OK", "timestamp": datetime.now(timezone.utc).isoformat()}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
