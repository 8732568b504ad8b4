"""Services module for business logic and data operations.

Each service wraps one AsyncSession and never commits; the caller (the
request-scoped ``get_db`` dependency) owns the transaction.
"""

from boardcore.services.acceptance_service import AcceptanceService
from boardcore.services.comment_service import CommentService, CommentThread
from boardcore.services.ledger import EngagementLedger, LedgerKind
from boardcore.services.post_service import PostService
from boardcore.services.question_service import QuestionService
from boardcore.services.reconcile_service import CounterDrift, ReconcileService
from boardcore.services.targets import TargetKind
from boardcore.services.view_service import ViewService
from boardcore.services.vote_service import BookmarkState, LikeState, VoteService, VoteState

__all__ = [
    "AcceptanceService",
    "BookmarkState",
    "CommentService",
    "CommentThread",
    "CounterDrift",
    "EngagementLedger",
    "LedgerKind",
    "LikeState",
    "PostService",
    "QuestionService",
    "ReconcileService",
    "TargetKind",
    "ViewService",
    "VoteService",
    "VoteState",
]
