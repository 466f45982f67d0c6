"""API routes for the gamification core"""
import logging
from datetime import datetime, timezone
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from gymtrainer.api.models import (
    AwardPointsRequest, AwardPointsResponse,
    ActivityRequest, StreakResponse,
    UserPointsResponse, PointsHistoryResponse,
    AchievementListResponse, EvaluateResponse,
    RewardListResponse, RedemptionRequest, RedemptionResponse, RedemptionListResponse,
    LeaderboardResponse,
    WorkoutScheduleRequest, WorkoutScheduleResponse,
    WorkoutCompleteRequest, WorkoutCompleteResponse,
    WorkoutListResponse, WorkoutHistoryResponse,
    MealLogRequest, ActivityLogRequest, ActivityResultResponse,
    HealthCheckResponse,
)
from gymtrainer.api.auth import verify_api_key
from gymtrainer.api.middleware import limiter
from gymtrainer.config import LEADERBOARD_SIZE
from gymtrainer.exceptions import GymTrainerError
from gymtrainer.models import LeaderboardTimeframe
from gymtrainer.services import GamificationService, WorkoutService, get_container

logger = logging.getLogger(__name__)

router = APIRouter()


def get_gamification_service() -> GamificationService:
    return get_container().gamification_service


def get_workout_service() -> WorkoutService:
    return get_container().workout_service


def _internal_error(action: str, e: Exception) -> HTTPException:
    logger.error(f"Error {action}: {e}", exc_info=True)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=str(e)
    )


# ==========================================
# Points
# ==========================================

@router.get("/api/v1/users/{user_id}/points", response_model=UserPointsResponse)
@limiter.limit("60/minute")
async def get_user_points(
    request: Request,
    user_id: str,
    api_key: str = Depends(verify_api_key),
    service: GamificationService = Depends(get_gamification_service)
):
    """Get points, level progress, streaks and rank (Rate limit: 60/minute)"""
    try:
        return UserPointsResponse(**await service.get_user_status(user_id))
    except GymTrainerError:
        raise
    except Exception as e:
        raise _internal_error("getting points", e)


@router.post("/api/v1/users/{user_id}/points", response_model=AwardPointsResponse)
@limiter.limit("30/minute")
async def award_user_points(
    request: Request,
    user_id: str,
    body: AwardPointsRequest,
    api_key: str = Depends(verify_api_key),
    service: GamificationService = Depends(get_gamification_service)
):
    """Award points directly; does not evaluate achievements (Rate limit: 30/minute)"""
    try:
        result = await service.award_points(user_id, body.amount, body.activity, body.description)
        return AwardPointsResponse(**result)
    except GymTrainerError:
        raise
    except Exception as e:
        raise _internal_error("awarding points", e)


@router.get("/api/v1/users/{user_id}/points/history", response_model=PointsHistoryResponse)
@limiter.limit("60/minute")
async def get_points_history(
    request: Request,
    user_id: str,
    limit: int = Query(50, ge=1, le=500),
    api_key: str = Depends(verify_api_key),
    service: GamificationService = Depends(get_gamification_service)
):
    """Get the points ledger, newest first (Rate limit: 60/minute)"""
    try:
        entries = await service.get_points_history(user_id, limit=limit)
        return PointsHistoryResponse(user_id=user_id, entries=entries)
    except GymTrainerError:
        raise
    except Exception as e:
        raise _internal_error("getting points history", e)


@router.post("/api/v1/users/{user_id}/activities", response_model=StreakResponse)
@limiter.limit("30/minute")
async def record_activity(
    request: Request,
    user_id: str,
    body: ActivityRequest,
    api_key: str = Depends(verify_api_key),
    service: GamificationService = Depends(get_gamification_service)
):
    """Record a qualifying daily activity and update the streak (Rate limit: 30/minute)"""
    try:
        result = await service.record_daily_activity(
            user_id,
            body.category,
            activity_date=body.activity_date,
            occurred_at=body.occurred_at
        )
        if result is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"User points not found for {user_id}"
            )
        return StreakResponse(**result)
    except (GymTrainerError, HTTPException):
        raise
    except Exception as e:
        raise _internal_error("recording activity", e)


# ==========================================
# Achievements
# ==========================================

@router.get("/api/v1/users/{user_id}/achievements", response_model=AchievementListResponse)
@limiter.limit("60/minute")
async def get_user_achievements(
    request: Request,
    user_id: str,
    api_key: str = Depends(verify_api_key),
    service: GamificationService = Depends(get_gamification_service)
):
    """Get achievements with unlock status and progress (Rate limit: 60/minute)"""
    try:
        return AchievementListResponse(**await service.get_user_achievements(user_id))
    except GymTrainerError:
        raise
    except Exception as e:
        raise _internal_error("getting achievements", e)


@router.post("/api/v1/users/{user_id}/achievements/evaluate", response_model=EvaluateResponse)
@limiter.limit("30/minute")
async def evaluate_achievements(
    request: Request,
    user_id: str,
    api_key: str = Depends(verify_api_key),
    service: GamificationService = Depends(get_gamification_service)
):
    """Unlock any newly satisfied achievements (Rate limit: 30/minute)"""
    try:
        unlocked = await service.evaluate_and_unlock(user_id)
        return EvaluateResponse(user_id=user_id, unlocked=unlocked)
    except GymTrainerError:
        raise
    except Exception as e:
        raise _internal_error("evaluating achievements", e)


# ==========================================
# Rewards
# ==========================================

@router.get("/api/v1/rewards", response_model=RewardListResponse)
@limiter.limit("60/minute")
async def list_rewards(
    request: Request,
    user_id: Optional[str] = Query(None, description="Annotate affordability for this user"),
    api_key: str = Depends(verify_api_key),
    service: GamificationService = Depends(get_gamification_service)
):
    """List active rewards, cheapest first (Rate limit: 60/minute)"""
    try:
        rewards = await service.get_available_rewards(user_id)
        return RewardListResponse(rewards=rewards)
    except GymTrainerError:
        raise
    except Exception as e:
        raise _internal_error("listing rewards", e)


@router.post(
    "/api/v1/users/{user_id}/redemptions",
    response_model=RedemptionResponse,
    status_code=status.HTTP_201_CREATED
)
@limiter.limit("10/minute")
async def redeem_reward(
    request: Request,
    user_id: str,
    body: RedemptionRequest,
    api_key: str = Depends(verify_api_key),
    service: GamificationService = Depends(get_gamification_service)
):
    """Redeem a reward (Rate limit: 10/minute)"""
    try:
        return RedemptionResponse(**await service.redeem(user_id, body.reward_id))
    except GymTrainerError:
        raise
    except Exception as e:
        raise _internal_error("redeeming reward", e)


@router.get("/api/v1/users/{user_id}/redemptions", response_model=RedemptionListResponse)
@limiter.limit("60/minute")
async def get_redemptions(
    request: Request,
    user_id: str,
    api_key: str = Depends(verify_api_key),
    service: GamificationService = Depends(get_gamification_service)
):
    """Get a user's redemptions, newest first (Rate limit: 60/minute)"""
    try:
        redemptions = await service.get_redemptions(user_id)
        return RedemptionListResponse(user_id=user_id, redemptions=redemptions)
    except GymTrainerError:
        raise
    except Exception as e:
        raise _internal_error("getting redemptions", e)


# ==========================================
# Leaderboard
# ==========================================

@router.get("/api/v1/leaderboard", response_model=LeaderboardResponse)
@limiter.limit("60/minute")
async def get_leaderboard(
    request: Request,
    timeframe: LeaderboardTimeframe = Query(LeaderboardTimeframe.ALL_TIME),
    limit: int = Query(LEADERBOARD_SIZE, ge=1, le=100),
    api_key: str = Depends(verify_api_key),
    service: GamificationService = Depends(get_gamification_service)
):
    """Get the leaderboard for a timeframe (Rate limit: 60/minute)"""
    try:
        entries = await service.get_leaderboard(timeframe, limit=limit)
        return LeaderboardResponse(timeframe=timeframe, entries=entries)
    except GymTrainerError:
        raise
    except Exception as e:
        raise _internal_error("getting leaderboard", e)


# ==========================================
# Workouts
# ==========================================

@router.post(
    "/api/v1/users/{user_id}/workouts",
    response_model=WorkoutScheduleResponse,
    status_code=status.HTTP_201_CREATED
)
@limiter.limit("30/minute")
async def schedule_workout(
    request: Request,
    user_id: str,
    body: WorkoutScheduleRequest,
    api_key: str = Depends(verify_api_key),
    service: WorkoutService = Depends(get_workout_service)
):
    """Schedule a workout (Rate limit: 30/minute)"""
    try:
        result = await service.schedule_workout(
            user_id,
            body.workout_name,
            body.duration_minutes,
            body.scheduled_date,
            body.scheduled_time
        )
        return WorkoutScheduleResponse(**result)
    except GymTrainerError:
        raise
    except Exception as e:
        raise _internal_error("scheduling workout", e)


@router.get("/api/v1/users/{user_id}/workouts", response_model=WorkoutListResponse)
@limiter.limit("60/minute")
async def get_scheduled_workouts(
    request: Request,
    user_id: str,
    api_key: str = Depends(verify_api_key),
    service: WorkoutService = Depends(get_workout_service)
):
    """Get upcoming scheduled workouts (Rate limit: 60/minute)"""
    try:
        workouts = await service.get_scheduled_workouts(user_id)
        return WorkoutListResponse(user_id=user_id, workouts=workouts)
    except GymTrainerError:
        raise
    except Exception as e:
        raise _internal_error("getting workouts", e)


@router.get("/api/v1/users/{user_id}/workouts/history", response_model=WorkoutHistoryResponse)
@limiter.limit("60/minute")
async def get_workout_history(
    request: Request,
    user_id: str,
    api_key: str = Depends(verify_api_key),
    service: WorkoutService = Depends(get_workout_service)
):
    """Get completed workouts, newest first (Rate limit: 60/minute)"""
    try:
        history = await service.get_workout_history(user_id)
        return WorkoutHistoryResponse(user_id=user_id, history=history)
    except GymTrainerError:
        raise
    except Exception as e:
        raise _internal_error("getting workout history", e)


@router.post(
    "/api/v1/users/{user_id}/workouts/{schedule_id}/complete",
    response_model=WorkoutCompleteResponse
)
@limiter.limit("30/minute")
async def complete_workout(
    request: Request,
    user_id: str,
    schedule_id: str,
    body: WorkoutCompleteRequest,
    api_key: str = Depends(verify_api_key),
    service: WorkoutService = Depends(get_workout_service)
):
    """Complete a scheduled workout (Rate limit: 30/minute)"""
    try:
        result = await service.complete_workout(
            user_id,
            schedule_id,
            calories_burned=body.calories_burned,
            notes=body.notes,
            completed_at=body.completed_at
        )
        return WorkoutCompleteResponse(**result)
    except GymTrainerError:
        raise
    except Exception as e:
        raise _internal_error("completing workout", e)


@router.post("/api/v1/users/{user_id}/workouts/{schedule_id}/cancel")
@limiter.limit("30/minute")
async def cancel_workout(
    request: Request,
    user_id: str,
    schedule_id: str,
    api_key: str = Depends(verify_api_key),
    service: WorkoutService = Depends(get_workout_service)
):
    """Cancel a scheduled workout (Rate limit: 30/minute)"""
    try:
        schedule = await service.cancel_workout(user_id, schedule_id)
        return {"schedule_id": schedule.id, "status": schedule.status.value}
    except GymTrainerError:
        raise
    except Exception as e:
        raise _internal_error("cancelling workout", e)


# ==========================================
# Activity logging
# ==========================================

@router.post("/api/v1/users/{user_id}/meals", response_model=ActivityResultResponse)
@limiter.limit("30/minute")
async def log_meal(
    request: Request,
    user_id: str,
    body: MealLogRequest,
    api_key: str = Depends(verify_api_key),
    service: GamificationService = Depends(get_gamification_service)
):
    """Log a meal: points plus diet streak (Rate limit: 30/minute)"""
    try:
        result = await service.process_meal_logged(user_id, body.meal_name, logged_at=body.logged_at)
        return ActivityResultResponse(**result)
    except GymTrainerError:
        raise
    except Exception as e:
        raise _internal_error("logging meal", e)


@router.post("/api/v1/users/{user_id}/progress", response_model=ActivityResultResponse)
@limiter.limit("30/minute")
async def log_progress(
    request: Request,
    user_id: str,
    body: ActivityLogRequest,
    api_key: str = Depends(verify_api_key),
    service: GamificationService = Depends(get_gamification_service)
):
    """Log fitness progress (Rate limit: 30/minute)"""
    try:
        result = await service.process_progress_logged(user_id, logged_at=body.logged_at)
        return ActivityResultResponse(**result)
    except GymTrainerError:
        raise
    except Exception as e:
        raise _internal_error("logging progress", e)


@router.post("/api/v1/users/{user_id}/mental-health/checkins", response_model=ActivityResultResponse)
@limiter.limit("30/minute")
async def log_mental_health_checkin(
    request: Request,
    user_id: str,
    body: ActivityLogRequest,
    api_key: str = Depends(verify_api_key),
    service: GamificationService = Depends(get_gamification_service)
):
    """Log a mental health check-in: points plus streak (Rate limit: 30/minute)"""
    try:
        result = await service.process_mental_health_checkin(user_id, logged_at=body.logged_at)
        return ActivityResultResponse(**result)
    except GymTrainerError:
        raise
    except Exception as e:
        raise _internal_error("logging check-in", e)


# ==========================================
# Health & metrics
# ==========================================

@router.get("/api/health", response_model=HealthCheckResponse)
async def health_check():
    """Health check endpoint (no auth required)"""
    database_ok = await get_container().repository.ping()

    return HealthCheckResponse(
        status="healthy" if database_ok else "degraded",
        database="connected" if database_ok else "unavailable",
        timestamp=datetime.now(timezone.utc)
    )


@router.get("/metrics")
async def metrics_endpoint():
    """Expose Prometheus metrics"""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )
