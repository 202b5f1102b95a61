from .points import (
    PointEarnRequest,
    PointCancelEarnRequest,
    PointUseRequest,
    PointCancelUseRequest,
    PointBalanceResponse,
    PointHistoryResponse,
)
from .policy import PointPolicyUpdateRequest, PointPolicyResponse
from .batch import ExpireBatchRequest, ExpireBatchResult
