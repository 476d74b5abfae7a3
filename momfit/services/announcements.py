from sqlalchemy.exc import SQLAlchemyError

from ..errors import PersistenceError
from ..models import db, CommunityPost
from ..utils import as_utc


def format_event_announcement(title, start_time):
    start_time = as_utc(start_time)
    when_date = f"{start_time:%A, %B} {start_time.day}, {start_time.year}"
    when_time = f"{start_time:%H:%M} UTC"
    return f'New event created: "{title}" on {when_date} at {when_time}. Check the Events tab for details!'


def post_announcement(community_id, content, user_id=None):
    """
    Append a post to a community's stream.
    Raises PersistenceError if the post could not be stored.
    """
    post = CommunityPost(community_id=community_id, user_id=user_id, content=content)
    try:
        db.session.add(post)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        raise PersistenceError(f'Could not post announcement to community {community_id}') from e
    return post
