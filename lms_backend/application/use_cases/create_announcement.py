from ...domain.entities import Announcement, User
from ...domain.validation import validate_announcement


class IAnnouncementRepository:
    def list_newest_first(self) -> list[Announcement]: ...
    def create(self, title: str, content: str, author_id: int) -> Announcement: ...


class CreateAnnouncement:
    def __init__(self, repo: IAnnouncementRepository):
        self.repo = repo

    def execute(self, author: User, title: str, content: str) -> Announcement:
        title, content = validate_announcement(title, content)
        # автор берётся только из аутентифицированного пользователя
        return self.repo.create(title=title, content=content, author_id=author.id)
