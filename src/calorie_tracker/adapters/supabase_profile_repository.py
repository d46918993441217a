"""Supabase-backed profile repository."""

from dataclasses import dataclass
from datetime import UTC, date, datetime

from supabase import Client

from calorie_tracker.domain.profile import ActivityLevel, Profile, Sex, WeeklyGoal
from calorie_tracker.services.profile import ProfileRepository


@dataclass
class SupabaseProfileRepository(ProfileRepository):
    """Supabase implementation for the ``users`` profile table."""

    client: Client

    def get_profile(self, uid: str) -> Profile | None:
        """Return the profile for a user id, if present."""
        response = (
            self.client.table("users").select("*").eq("uid", uid).limit(1).execute()
        )
        if not response.data:
            return None
        return _parse_profile(response.data[0])

    def save_profile(self, profile: Profile) -> None:
        """Upsert the profile row.

        The weekly goal is stored as a goal type plus an absolute daily rate.
        """
        self.client.table("users").upsert(
            {
                "uid": profile.uid,
                "sex": profile.sex.value,
                "date_of_birth": (
                    profile.date_of_birth.isoformat() if profile.date_of_birth else None
                ),
                "age": profile.age,
                "height_cm": profile.height_cm,
                "weight_kg": profile.weight_kg,
                "starting_weight_kg": profile.starting_weight_kg,
                "goal_weight_kg": profile.goal_weight_kg,
                "activity_level": (
                    profile.activity_level.value if profile.activity_level else None
                ),
                "goal_type": profile.weekly_goal.goal_type,
                "rate_kcal_per_day": abs(profile.weekly_goal.delta),
                "macro_c": profile.macro_c,
                "macro_p": profile.macro_p,
                "macro_f": profile.macro_f,
                "bmr": profile.bmr,
                "tdee": profile.tdee,
                "calorie_goal": profile.calorie_goal,
                "updated_at": datetime.now(tz=UTC).isoformat(),
            },
            on_conflict="uid",
        ).execute()


def _parse_profile(row: dict[str, object]) -> Profile:
    dob_raw = row.get("date_of_birth")
    activity_raw = row.get("activity_level")
    return Profile(
        uid=str(row["uid"]),
        sex=Sex(row.get("sex") or Sex.MALE.value),
        date_of_birth=date.fromisoformat(dob_raw[:10]) if dob_raw else None,
        age=_optional_int(row.get("age")),
        height_cm=_optional_float(row.get("height_cm")),
        weight_kg=_optional_float(row.get("weight_kg")),
        starting_weight_kg=_optional_float(row.get("starting_weight_kg")),
        goal_weight_kg=_optional_float(row.get("goal_weight_kg")),
        activity_level=ActivityLevel(activity_raw) if activity_raw else None,
        weekly_goal=WeeklyGoal.from_stored(
            row.get("goal_type"), int(row.get("rate_kcal_per_day") or 0)
        ),
        macro_c=_int_or(row.get("macro_c"), 50),
        macro_p=_int_or(row.get("macro_p"), 20),
        macro_f=_int_or(row.get("macro_f"), 30),
        bmr=_optional_int(row.get("bmr")),
        tdee=_optional_int(row.get("tdee")),
        calorie_goal=_optional_int(row.get("calorie_goal")),
    )


def _optional_float(value: object) -> float | None:
    return float(value) if value is not None else None


def _optional_int(value: object) -> int | None:
    return int(value) if value is not None else None


def _int_or(value: object, default: int) -> int:
    return int(value) if value is not None else default
