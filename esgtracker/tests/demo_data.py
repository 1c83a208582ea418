"""
Demo questionnaire answers used across the test suite.

Keys are camelCase, exactly as the API receives them. Every entry in
VALID_YEARS passes all questionnaire rules.

Expected ratios are hand-computed:
  2023: 400/1000 renewable = 40%, 4/10 female = 40%, 5/1000 CO2 per revenue = 0.005,
        10/1000 community = 1%
  2024: 600/1200 = 50%, 6/12 = 50%, 6/2000 = 0.003, 50/2000 = 2.5%
"""

VALID_2023 = {
    "totalElectricityConsumption": 1000,
    "renewableElectricityConsumption": 400,
    "totalFuelConsumption": 250,
    "carbonEmissions": 5,
    "totalEmployees": 10,
    "femaleEmployees": 4,
    "averageTrainingHours": 12,
    "communityInvestment": 10,
    "independentBoardMembers": 40,
    "hasDataPrivacyPolicy": True,
    "totalRevenue": 1000,
}

VALID_2024 = {
    "totalElectricityConsumption": 1200,
    "renewableElectricityConsumption": 600,
    "totalFuelConsumption": 200,
    "carbonEmissions": 6,
    "totalEmployees": 12,
    "femaleEmployees": 6,
    "averageTrainingHours": 15.5,
    "communityInvestment": 50,
    "independentBoardMembers": 55.5,
    "hasDataPrivacyPolicy": False,
    "totalRevenue": 2000,
}

VALID_YEARS = {2023: VALID_2023, 2024: VALID_2024}

EXPECTED_METRICS = {
    2023: {
        "carbonIntensity": 0.005,
        "renewableElectricityRatio": 40.0,
        "diversityRatio": 40.0,
        "communitySpendRatio": 1.0,
    },
    2024: {
        "carbonIntensity": 0.003,
        "renewableElectricityRatio": 50.0,
        "diversityRatio": 50.0,
        "communitySpendRatio": 2.5,
    },
}

DEMO_USER = {"name": "A B", "email": "a@b.com", "password": "abcdef"}


def with_changes(base: dict, **changes) -> dict:
    """Copy of base with some answers replaced (None clears an answer)."""
    data = dict(base)
    data.update(changes)
    return data
