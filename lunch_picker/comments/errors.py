from __future__ import annotations


class CommentError(Exception):
    """Base class for comment policy failures; ``message`` is shown to the user."""

    message = "댓글 처리에 실패했습니다."

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class MissingField(CommentError):
    message = "필수 값이 누락되었습니다."


class ContentTooLong(CommentError):
    message = "댓글은 200자 이내로 입력해 주세요."


class LinkNotAllowed(CommentError):
    message = "링크가 포함된 댓글은 작성할 수 없습니다."


class AuthorizationError(CommentError):
    message = "관리자 인증에 실패했습니다."
