"""Reference exercise catalog used to suggest names when logging a workout."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CatalogExercise:
    name: str
    category: str
    subcategory: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "category": self.category, "subcategory": self.subcategory}


_CATALOG = [
    ("Deadlifts", "Full Body", "Compound"),
    ("Squats", "Full Body", "Compound"),
    ("Clean and Press", "Full Body", "Compound"),
    ("Snatch", "Full Body", "Compound"),
    ("Kettlebell Swings", "Full Body", "Compound"),
    ("Thrusters", "Full Body", "Compound"),
    ("Burpees", "Full Body", "Compound"),
    ("Bench Press", "Upper Body", "Chest"),
    ("Incline Bench Press", "Upper Body", "Chest"),
    ("Decline Bench Press", "Upper Body", "Chest"),
    ("Chest Flyes", "Upper Body", "Chest"),
    ("Push-Ups", "Upper Body", "Chest"),
    ("Chest Press Machine", "Upper Body", "Chest"),
    ("Pull-Ups", "Upper Body", "Back"),
    ("Chin-Ups", "Upper Body", "Back"),
    ("Lat Pulldown", "Upper Body", "Back"),
    ("Barbell Rows", "Upper Body", "Back"),
    ("Dumbbell Rows", "Upper Body", "Back"),
    ("T-Bar Rows", "Upper Body", "Back"),
    ("Seated Cable Row", "Upper Body", "Back"),
    ("Overhead Press", "Upper Body", "Shoulders"),
    ("Arnold Press", "Upper Body", "Shoulders"),
    ("Lateral Raises", "Upper Body", "Shoulders"),
    ("Front Raises", "Upper Body", "Shoulders"),
    ("Rear Delt Flyes", "Upper Body", "Shoulders"),
    ("Shrugs", "Upper Body", "Shoulders"),
    ("Upright Rows", "Upper Body", "Shoulders"),
    ("Barbell Curls", "Upper Body", "Biceps"),
    ("Dumbbell Curls", "Upper Body", "Biceps"),
    ("Hammer Curls", "Upper Body", "Biceps"),
    ("Preacher Curls", "Upper Body", "Biceps"),
    ("Concentration Curls", "Upper Body", "Biceps"),
    ("Cable Curls", "Upper Body", "Biceps"),
    ("EZ Bar Curls", "Upper Body", "Biceps"),
    ("Tricep Dips", "Upper Body", "Triceps"),
    ("Skull Crushers", "Upper Body", "Triceps"),
    ("Tricep Pushdowns", "Upper Body", "Triceps"),
    ("Overhead Tricep Extensions", "Upper Body", "Triceps"),
    ("Close-Grip Bench Press", "Upper Body", "Triceps"),
    ("Tricep Kickbacks", "Upper Body", "Triceps"),
    ("Back Squats", "Lower Body", "Quadriceps"),
    ("Front Squats", "Lower Body", "Quadriceps"),
    ("Goblet Squats", "Lower Body", "Quadriceps"),
    ("Leg Press", "Lower Body", "Quadriceps"),
    ("Lunges", "Lower Body", "Quadriceps"),
    ("Step-Ups", "Lower Body", "Quadriceps"),
    ("Bulgarian Split Squats", "Lower Body", "Quadriceps"),
    ("Romanian Deadlifts", "Lower Body", "Hamstrings"),
    ("Leg Curls", "Lower Body", "Hamstrings"),
    ("Good Mornings", "Lower Body", "Hamstrings"),
    ("Glute-Ham Raise", "Lower Body", "Hamstrings"),
    ("Hip Thrusts", "Lower Body", "Glutes"),
    ("Glute Bridges", "Lower Body", "Glutes"),
    ("Cable Kickbacks", "Lower Body", "Glutes"),
    ("Standing Calf Raises", "Lower Body", "Calves"),
    ("Seated Calf Raises", "Lower Body", "Calves"),
    ("Donkey Calf Raises", "Lower Body", "Calves"),
    ("Calf Press", "Lower Body", "Calves"),
    ("Plank", "Core", "Abs"),
    ("Side Plank", "Core", "Abs"),
    ("Crunches", "Core", "Abs"),
    ("Sit-Ups", "Core", "Abs"),
    ("Russian Twists", "Core", "Abs"),
    ("Hanging Leg Raises", "Core", "Abs"),
    ("Knee Tucks", "Core", "Abs"),
    ("Ab Rollouts", "Core", "Abs"),
    ("Bicycle Crunches", "Core", "Abs"),
    ("Cable Woodchoppers", "Core", "Abs"),
    ("Decline Bench Sit-Ups", "Core", "Abs"),
    ("Mountain Climbers", "Core", "Abs"),
    ("Foam Rolling", "Mobility", "Recovery"),
    ("Dynamic Stretching", "Mobility", "Flexibility"),
    ("Static Stretching", "Mobility", "Flexibility"),
    ("Resistance Band Work", "Mobility", "Flexibility"),
    ("Single-Leg Balance Work", "Mobility", "Balance"),
    ("Treadmill Running", "Cardio"),
    ("Treadmill Walking", "Cardio"),
    ("Stationary Bike", "Cardio"),
    ("Rowing Machine", "Cardio"),
    ("Elliptical", "Cardio"),
    ("Stair Climber", "Cardio"),
    ("Jump Rope", "Cardio"),
    ("Battle Ropes", "Cardio"),
    ("Sled Pushes", "Cardio"),
    ("HIIT Circuits", "Cardio"),
]

EXERCISES = [CatalogExercise(*row) for row in _CATALOG]


def find_exercise(name: str) -> CatalogExercise | None:
    """Case-insensitive exact match on the exercise name."""
    key = (name or "").strip().lower()
    for exercise in EXERCISES:
        if exercise.name.lower() == key:
            return exercise
    return None


def search_exercises(query: str = "", limit: int | None = None) -> list[CatalogExercise]:
    """Exercises whose name or category contains *query*, in catalog order."""
    q = (query or "").strip().lower()
    matches = [e for e in EXERCISES if q in e.name.lower() or q in e.category.lower()]
    return matches[:limit] if limit is not None else matches


def categories() -> list[str]:
    seen: list[str] = []
    for exercise in EXERCISES:
        if exercise.category not in seen:
            seen.append(exercise.category)
    return seen
