from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query

from api.deps import get_analysis_service, get_current_user_id
from api.schemas.analysis import AnalysisRequest, AnalysisStartedResponse, TaskResponse
from paperinsight.service.analysis_service import AnalysisService

router = APIRouter(prefix="/api/analysis", tags=["analysis"])


@router.post("", response_model=AnalysisStartedResponse)
async def start_analysis(
    body: AnalysisRequest,
    user_id: int = Depends(get_current_user_id),
    service: AnalysisService = Depends(get_analysis_service),
):
    """创建分析任务并立即返回 task_id，进度通过 /tasks/{task_id} 轮询"""
    task_id = await service.start_analysis(
        user_id=user_id,
        paper_id=body.paper_id,
        provider=body.provider.value if body.provider else None,
        model_name=body.model_name,
    )
    return AnalysisStartedResponse(task_id=task_id)


@router.get("/tasks", response_model=List[TaskResponse])
def list_tasks(
    limit: int = Query(default=20, ge=1, le=100),
    user_id: int = Depends(get_current_user_id),
    service: AnalysisService = Depends(get_analysis_service),
):
    return [TaskResponse.from_task(t) for t in service.list_tasks(user_id, limit=limit)]


@router.get("/tasks/{task_id}", response_model=TaskResponse)
def get_task(
    task_id: str,
    user_id: int = Depends(get_current_user_id),
    service: AnalysisService = Depends(get_analysis_service),
):
    task = service.get_task_status(task_id)
    if task.user_id != user_id:
        raise HTTPException(status_code=404, detail=f"Task not found: {task_id}")
    return TaskResponse.from_task(task)
