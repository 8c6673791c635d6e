"""
Quote status workflow.

pending ──(owner signature / owner approval / client approve)──> approved
pending ──(owner rejection / client reject)─────────────────────> rejected
pending ──(client request adjustment)───────────────────────────> negotiating
negotiating, rejected ──(owner resend)──────────────────────────> pending

approved is terminal. Transitions are table driven; the functions here only
touch status, client_feedback, signature and client_display_name on the
object they receive, so they work on ORM rows and on plain test doubles alike.
"""
import enum
import logging
from typing import NamedTuple, Optional

from app.exceptions import InvalidTransitionError

logger = logging.getLogger(__name__)

PENDING = 'pending'
APPROVED = 'approved'
REJECTED = 'rejected'
NEGOTIATING = 'negotiating'


class QuoteAction(str, enum.Enum):
    """Everything that can move a quote between statuses."""
    SIGN = "sign"                                          # owner, in-person signature
    MARK_APPROVED = "mark_approved"                        # owner, no signature
    MARK_REJECTED = "mark_rejected"                        # owner
    CLIENT_APPROVE = "approve"                             # public view
    CLIENT_REJECT = "reject"                               # public view
    CLIENT_REQUEST_ADJUSTMENT = "requestAdjustment"        # public view
    RESEND = "resend"                                      # owner


class Transition(NamedTuple):
    sources: frozenset
    target: str
    requires_feedback: bool = False


TRANSITIONS = {
    QuoteAction.SIGN: Transition(frozenset({PENDING}), APPROVED),
    QuoteAction.MARK_APPROVED: Transition(frozenset({PENDING}), APPROVED),
    QuoteAction.MARK_REJECTED: Transition(frozenset({PENDING}), REJECTED),
    QuoteAction.CLIENT_APPROVE: Transition(frozenset({PENDING}), APPROVED),
    QuoteAction.CLIENT_REJECT: Transition(frozenset({PENDING}), REJECTED),
    QuoteAction.CLIENT_REQUEST_ADJUSTMENT: Transition(frozenset({PENDING}), NEGOTIATING, requires_feedback=True),
    QuoteAction.RESEND: Transition(frozenset({NEGOTIATING, REJECTED}), PENDING),
}

# Vocabulary of the client-facing (shareable) quote page
PUBLIC_ACTIONS = {
    'approve': QuoteAction.CLIENT_APPROVE,
    'reject': QuoteAction.CLIENT_REJECT,
    'requestAdjustment': QuoteAction.CLIENT_REQUEST_ADJUSTMENT,
    'request-adjustment': QuoteAction.CLIENT_REQUEST_ADJUSTMENT,
}

OWNER_ACTIONS = (
    QuoteAction.SIGN,
    QuoteAction.MARK_APPROVED,
    QuoteAction.MARK_REJECTED,
    QuoteAction.RESEND,
)


def _status_value(status):
    return getattr(status, 'value', status) or PENDING


def _clean(text: Optional[str]) -> Optional[str]:
    if text is None:
        return None
    text = text.strip()
    return text or None


def parse_action(name) -> QuoteAction:
    """Resolve an action from its enum, value or public alias."""
    if isinstance(name, QuoteAction):
        return name
    if name in PUBLIC_ACTIONS:
        return PUBLIC_ACTIONS[name]
    try:
        return QuoteAction(name)
    except ValueError:
        raise InvalidTransitionError(name, None, message=f"Ação desconhecida: '{name}'")


def can_apply(status, action) -> bool:
    transition = TRANSITIONS.get(parse_action(action))
    return transition is not None and _status_value(status) in transition.sources


def allowed_actions(status, public=False) -> list:
    """Actions a UI may offer for a quote in the given status."""
    candidates = PUBLIC_ACTIONS.values() if public else OWNER_ACTIONS
    seen = []
    for action in candidates:
        if action not in seen and can_apply(status, action):
            seen.append(action)
    return seen


def apply_action(quote, action, feedback: Optional[str] = None, signature: Optional[str] = None,
                 client_name: Optional[str] = None) -> str:
    """
    Move `quote` to the status `action` leads to and apply its side effects.

    Returns the new status value.

    Raises:
        InvalidTransitionError: action not allowed from the current status,
            request-adjustment without feedback, or signing without a signature.
    """
    action = parse_action(action)
    current = _status_value(quote.status)
    transition = TRANSITIONS[action]

    if current not in transition.sources:
        logger.warning(f"Rejected transition {action.value} from status {current} on quote {getattr(quote, 'id', None)}")
        raise InvalidTransitionError(action, current)

    feedback = _clean(feedback)
    if transition.requires_feedback and not feedback:
        raise InvalidTransitionError(action, current, message='Descreva o ajuste solicitado.')

    if action is QuoteAction.SIGN:
        if not signature:
            raise InvalidTransitionError(action, current, message='Assinatura obrigatória para aprovação presencial.')
        quote.signature = signature
        quote.client_feedback = None
    elif action in (QuoteAction.MARK_APPROVED, QuoteAction.CLIENT_APPROVE):
        quote.client_feedback = None
        if action is QuoteAction.CLIENT_APPROVE:
            quote.client_display_name = _clean(client_name)
    elif action in (QuoteAction.MARK_REJECTED, QuoteAction.CLIENT_REJECT,
                    QuoteAction.CLIENT_REQUEST_ADJUSTMENT):
        quote.client_feedback = feedback
    elif action is QuoteAction.RESEND:
        quote.client_feedback = None
        quote.signature = None
        quote.client_display_name = None

    quote.status = transition.target
    logger.info(f"Quote {getattr(quote, 'id', None)}: {current} -> {transition.target} ({action.value})")
    return transition.target
