# app/endpoints/ai_test.py
import time

from fastapi import APIRouter

from app.errors import ValidationError
from app.models.request_models import AITestRequest
from app.services.priority_service import assess

# Development-only: mounted by app.main unless APP_ENV is "production"
router = APIRouter(prefix="/api/test", tags=["Test"])


@router.post("/ai-test")
async def ai_test(body: AITestRequest):
    """Run the triage classifier on a disease string without creating a request."""
    if not body.disease or not body.disease.strip():
        raise ValidationError("Disease is required")

    start = time.perf_counter()
    assessment = await assess(body.disease)
    elapsed_ms = (time.perf_counter() - start) * 1000

    return {
        "success": True,
        "data": {
            "disease": body.disease,
            "priority": assessment.priority.value,
            "description": assessment.description,
            "processingTime": f"{elapsed_ms:.0f}ms",
        },
    }
