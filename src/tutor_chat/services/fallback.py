"""Canned replies used when the upstream provider fails."""

FALLBACK_TEMPLATES: tuple[str, ...] = (
    '안녕하세요! 질문해주셔서 감사해요. "{message}"에 대한 답변을 준비하고 있어요. 잠시만 기다려주세요! 😊',
    '안녕하세요! "{message}"에 대해 궁금하시군요. 현재 시스템 점검 중이라 정확한 답변을 드리기 어려워요. 잠시 후 다시 시도해보세요! 💪',
    '안녕하세요! "{message}"에 대한 질문이시군요. 지금은 일시적으로 응답이 지연되고 있어요. 잠시 후 다시 질문해주시면 더 자세히 답변드릴게요! 🌟',
    '안녕하세요! "{message}"에 대해 궁금하시군요. 현재 시스템이 혼잡해서 정확한 답변을 드리기 어려워요. 잠시 후 다시 시도해보세요! 📚',
    '안녕하세요! "{message}"에 대한 질문이시군요. 지금은 일시적으로 응답이 지연되고 있어요. 잠시 후 다시 질문해주시면 더 자세히 답변드릴게요! ✨',
)

FALLBACK_NOTE = "OpenAI API 오류로 인해 대체 응답을 제공합니다."


class FallbackResponder:
    """Picks a canned apology for a user message.

    Selection is deterministic: ``len(message) % len(templates)``, so the
    same message always gets the same reply.
    """

    def __init__(self, templates: tuple[str, ...] = FALLBACK_TEMPLATES) -> None:
        if not templates:
            raise ValueError("at least one fallback template is required")
        self._templates = templates

    def fallback(self, user_message: str) -> str:
        message = user_message if isinstance(user_message, str) else str(user_message)
        template = self._templates[len(message) % len(self._templates)]
        return template.replace("{message}", message)

    @property
    def templates(self) -> tuple[str, ...]:
        return self._templates
