"""FastAPI application factory."""

import base64
import binascii
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, date, datetime

from fastapi import FastAPI, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse

from calorie_tracker.api.models import (
    CustomFoodRequest,
    DiaryEntryRequest,
    ExerciseEntryRequest,
    FoodImageRequest,
    LogMealRequest,
    MyMealRequest,
    ProfileEditRequest,
    ProfileSyncRequest,
    StepsRequest,
)
from calorie_tracker.app_logging import configure_logging
from calorie_tracker.containers import AppContainer
from calorie_tracker.domain.diary import (
    CustomEntry,
    EntryVariant,
    FromBarcode,
    FromScan,
    FromSearch,
)
from calorie_tracker.domain.errors import (
    CustomFoodError,
    ProfileUnavailableError,
    ValidationError,
)
from calorie_tracker.domain.exercise import ExerciseCategory, ExerciseRequest
from calorie_tracker.domain.profile import Profile
from calorie_tracker.services.exercise import MET_CATALOG, find_activity
from calorie_tracker.services.foods import macro_calorie_check
from calorie_tracker.services.goals import compute_goals
from calorie_tracker.services.macros import MACRO_PRESETS, macro_targets

QUICK_ADD_NAME = "Quick Add Entry"
MAX_SEARCH_LIMIT = 50


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        state_container: AppContainer = app.state.container
        for uid in list(state_container.profile_service.pending_uids()):
            await state_container.profile_service.flush(uid)
        await state_container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(ValidationError)
    async def validation_error_handler(
        request: Request, exc: ValidationError
    ) -> JSONResponse:
        logger.info("Rejected %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"errors": exc.messages},
        )

    @app.exception_handler(ProfileUnavailableError)
    async def profile_unavailable_handler(
        request: Request, exc: ProfileUnavailableError
    ) -> JSONResponse:
        logger.warning("Refused %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"errors": [str(exc)]},
        )

    @app.get("/api/health")
    async def health() -> dict[str, object]:
        """Simple health check endpoint."""
        return {"status": "ok", "timestamp": datetime.now(tz=UTC).isoformat()}

    @app.post("/api/users/sync")
    async def sync_user(payload: ProfileSyncRequest, request: Request) -> dict[str, object]:
        """Replace a user's profile and return it with recomputed goals."""
        state_container: AppContainer = request.app.state.container
        profile = state_container.profile_service.sync(payload.to_profile())
        return {"user": profile}

    @app.get("/api/users/{uid}")
    async def get_user(uid: str, request: Request) -> dict[str, object]:
        """Return the current profile, defaults for a user without one."""
        state_container: AppContainer = request.app.state.container
        result = state_container.profile_service.load(uid)
        return {"user": result.value, "degraded": not result.ok}

    @app.patch("/api/users/{uid}")
    async def edit_user(
        uid: str, payload: ProfileEditRequest, request: Request
    ) -> dict[str, object]:
        """Apply a live profile edit; the save happens in the background."""
        state_container: AppContainer = request.app.state.container
        profile = state_container.profile_service.edit(uid, **payload.changes())
        return {"user": profile, "macros": _macros_payload(profile)}

    @app.post("/api/users/{uid}/save")
    async def save_user(uid: str, request: Request) -> dict[str, object]:
        """Validate and persist the current profile immediately."""
        state_container: AppContainer = request.app.state.container
        profile = await state_container.profile_service.save_explicit(uid)
        return {"user": profile}

    @app.get("/api/users/{uid}/goals")
    async def get_goals(uid: str, request: Request) -> dict[str, object]:
        """Return calorie goal and macro gram targets."""
        state_container: AppContainer = request.app.state.container
        profile = state_container.profile_service.load(uid).value
        return {
            "goals": compute_goals(profile),
            "macros": _macros_payload(profile),
            "presets": MACRO_PRESETS,
        }

    @app.get("/api/foods/search")
    async def search_foods(
        request: Request,
        q: str = "",
        limit: int | None = Query(None, ge=1, le=MAX_SEARCH_LIMIT),
        session: str | None = None,
    ) -> dict[str, object]:
        """Search foods; with ``session`` a superseded response is reported stale."""
        state_container: AppContainer = request.app.state.container
        if session:
            result = await state_container.search_session(session).submit(q, limit)
            if result is None:
                return {"foods": [], "stale": True, "degraded": False}
        else:
            result = await state_container.food_search_service.search(q, limit)
        return {"foods": result.value, "stale": False, "degraded": not result.ok}

    @app.get("/api/foods/barcode/{barcode}")
    async def lookup_barcode(barcode: str, request: Request) -> dict[str, object]:
        """Resolve a scanned barcode to a food."""
        state_container: AppContainer = request.app.state.container
        result = await state_container.food_catalog_service.lookup_barcode(barcode)
        if result.value is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return {"food": result.value}

    @app.get("/api/foods/{food_id}")
    async def get_food(
        food_id: str, request: Request, amount: float | None = None, unit: str = "g"
    ) -> dict[str, object]:
        """Return a food, with portion nutrition when ``amount`` is given."""
        state_container: AppContainer = request.app.state.container
        result = await state_container.food_catalog_service.get_food(food_id)
        if result.value is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        response: dict[str, object] = {"food": result.value}
        if amount is not None:
            response["portion"] = result.value.portion(amount, unit)
        return response

    @app.post("/api/foods", status_code=status.HTTP_201_CREATED)
    async def create_food(
        payload: CustomFoodRequest, request: Request
    ) -> dict[str, object]:
        """Create a custom food."""
        state_container: AppContainer = request.app.state.container
        food = state_container.food_catalog_service.create_custom_food(
            payload.to_input()
        )
        return {"food": food}

    @app.get("/api/meals/{uid}")
    async def list_meals(uid: str, request: Request) -> dict[str, object]:
        """Return a user's saved meals."""
        state_container: AppContainer = request.app.state.container
        result = state_container.my_meal_service.list_meals(uid)
        return {"meals": result.value, "degraded": not result.ok}

    @app.post("/api/meals", status_code=status.HTTP_201_CREATED)
    async def create_meal(payload: MyMealRequest, request: Request) -> dict[str, object]:
        """Save a meal built from food items."""
        state_container: AppContainer = request.app.state.container
        meal = state_container.my_meal_service.create_meal(
            payload.uid,
            payload.name,
            [item.to_item() for item in payload.items],
            photo=payload.photo,
            directions=payload.directions,
        )
        return {"meal": meal}

    @app.delete("/api/meals/{uid}/{meal_id}")
    async def delete_meal(uid: str, meal_id: str, request: Request) -> dict[str, str]:
        """Delete a saved meal."""
        state_container: AppContainer = request.app.state.container
        state_container.my_meal_service.delete_meal(uid, meal_id)
        return {"status": "ok"}

    @app.post("/api/meals/{uid}/{meal_id}/log", status_code=status.HTTP_201_CREATED)
    async def log_meal(
        uid: str, meal_id: str, payload: LogMealRequest, request: Request
    ) -> dict[str, object]:
        """Add a saved meal to the diary as one entry."""
        state_container: AppContainer = request.app.state.container
        entry = state_container.my_meal_service.log_meal(
            uid, meal_id, payload.date, payload.meal_type, payload.servings
        )
        if entry is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return {"entry": entry}

    @app.get("/api/diary/{uid}/{day}")
    async def list_diary(uid: str, day: date, request: Request) -> dict[str, object]:
        """Return a day's diary entries."""
        state_container: AppContainer = request.app.state.container
        result = state_container.diary_service.list_entries(uid, day)
        return {"entries": result.value, "degraded": not result.ok}

    @app.post("/api/diary", status_code=status.HTTP_201_CREATED)
    async def create_diary_entry(
        payload: DiaryEntryRequest, request: Request
    ) -> dict[str, object]:
        """Log food from any of the entry flows."""
        state_container: AppContainer = request.app.state.container
        if payload.kind == "my_meal":
            entry = state_container.my_meal_service.log_meal(
                payload.uid,
                _required(payload.meal_id, "meal_id"),
                payload.date,
                payload.meal_type,
                payload.servings,
            )
            if entry is None:
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
            return {"entry": entry}
        variant = await _diary_variant(state_container, payload)
        entry = state_container.diary_service.log_entry(
            payload.uid, payload.date, payload.meal_type, variant
        )
        if isinstance(variant, CustomEntry):
            check = macro_calorie_check(
                variant.kcal, variant.carbs, variant.protein, variant.fat
            )
            return {"entry": entry, "macro_check": check}
        return {"entry": entry}

    @app.delete("/api/diary/{uid}/{entry_id}")
    async def delete_diary_entry(
        uid: str, entry_id: str, request: Request
    ) -> dict[str, str]:
        """Delete a diary entry."""
        state_container: AppContainer = request.app.state.container
        state_container.diary_service.delete_entry(uid, entry_id)
        return {"status": "ok"}

    @app.get("/api/exercise/activities")
    async def list_activities() -> dict[str, object]:
        """Return the cardio and strength activity catalog."""
        return {"activities": list(MET_CATALOG.values())}

    @app.get("/api/exercise/{uid}/{day}")
    async def list_exercise(uid: str, day: date, request: Request) -> dict[str, object]:
        """Return a day's workouts."""
        state_container: AppContainer = request.app.state.container
        result = state_container.exercise_service.list_exercise(uid, day)
        return {"exercises": result.value, "degraded": not result.ok}

    @app.post("/api/exercise", status_code=status.HTTP_201_CREATED)
    async def create_exercise(
        payload: ExerciseEntryRequest, request: Request
    ) -> dict[str, object]:
        """Log a workout with calories computed from MET and body weight."""
        state_container: AppContainer = request.app.state.container
        entry = state_container.exercise_service.log_exercise(
            payload.uid, _exercise_request(payload)
        )
        return {"exercise": entry}

    @app.delete("/api/exercise/{uid}/{entry_id}")
    async def delete_exercise(
        uid: str, entry_id: str, request: Request
    ) -> dict[str, str]:
        """Delete a workout."""
        state_container: AppContainer = request.app.state.container
        state_container.exercise_service.delete_exercise(uid, entry_id)
        return {"status": "ok"}

    @app.post("/api/steps")
    async def report_steps(payload: StepsRequest, request: Request) -> dict[str, str]:
        """Store the device's step count for a day."""
        state_container: AppContainer = request.app.state.container
        state_container.step_counter.report(payload.uid, payload.date, payload.steps)
        return {"status": "ok"}

    @app.get("/api/summary/{uid}/{day}")
    async def day_summary(
        uid: str, day: date, request: Request, steps: int | None = None
    ) -> dict[str, object]:
        """Return the diary day aggregate shown on the home screen."""
        state_container: AppContainer = request.app.state.container
        summary = state_container.diary_service.get_day_summary(uid, day, steps=steps)
        return {"summary": summary, "degraded": not summary.ok}

    @app.post("/api/analyze-food-image")
    async def analyze_food_image(
        payload: FoodImageRequest, request: Request
    ) -> dict[str, object]:
        """Detect foods on a meal photo."""
        state_container: AppContainer = request.app.state.container
        try:
            image_bytes = base64.b64decode(payload.image, validate=True)
        except binascii.Error as exc:
            raise ValidationError(["Image must be base64 encoded"]) from exc
        extract = await state_container.vision_service.extract(image_bytes)
        return {"foods": extract.items}

    return app


async def _diary_variant(
    container: AppContainer, payload: DiaryEntryRequest
) -> EntryVariant:
    if payload.kind == "search":
        result = await container.food_catalog_service.get_food(
            _required(payload.food_id, "food_id")
        )
        if result.value is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return FromSearch(
            food=result.value,
            amount=payload.amount,
            unit=payload.unit,
            custom_name=payload.custom_name,
        )
    if payload.kind == "barcode":
        result = await container.food_catalog_service.lookup_barcode(
            _required(payload.barcode, "barcode")
        )
        if result.value is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return FromBarcode(food=result.value, amount=payload.amount, unit=payload.unit)
    if payload.kind == "scan":
        return FromScan(
            name=_required(payload.name, "name"),
            grams=_required(payload.grams, "grams"),
            kcal_per_100g=_required(payload.kcal_per_100g, "kcal_per_100g"),
            carbs_per_100g=payload.carbs_per_100g,
            protein_per_100g=payload.protein_per_100g,
            fat_per_100g=payload.fat_per_100g,
        )
    if payload.kcal is None:
        raise CustomFoodError(["Calories is required"])
    return CustomEntry(
        name=(payload.name or "").strip() or QUICK_ADD_NAME,
        kcal=payload.kcal,
        carbs=payload.carbs,
        protein=payload.protein,
        fat=payload.fat,
        amount=payload.amount if "amount" in payload.model_fields_set else 1.0,
        unit=payload.unit if "unit" in payload.model_fields_set else "serving",
    )


def _exercise_request(payload: ExerciseEntryRequest) -> ExerciseRequest:
    activity = find_activity(payload.activity_id) if payload.activity_id else None
    if payload.activity_id and activity is None:
        raise ValidationError([f"Unknown activity: {payload.activity_id}"])
    name = payload.name or (activity.name if activity else None)
    met = payload.met or (activity.met if activity else None)
    if not name or met is None:
        raise ValidationError(["Exercise name and MET value are required"])
    category = payload.category or (
        activity.category if activity else ExerciseCategory.CARDIO
    )
    return ExerciseRequest(
        day=payload.date,
        category=category,
        name=name,
        duration_min=payload.duration_min,
        met=met,
        time=payload.time,
        distance=payload.distance,
        sets=payload.sets,
        reps=payload.reps,
        weight=payload.weight,
    )


def _macros_payload(profile: Profile) -> dict[str, object]:
    targets = macro_targets(profile)
    return {
        "split": profile.macro_split,
        "targets": targets,
        "balanced": targets.balanced,
    }


def _required(value, field_name: str):
    if value is None or value == "":
        raise ValidationError([f"{field_name} is required"])
    return value
