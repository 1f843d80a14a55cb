from datetime import datetime, timezone

from darksignal import db


def _utcnow():
    return datetime.now(timezone.utc)


class Score(db.Model):
    __tablename__ = 'score'
    id = db.Column(db.Integer, primary_key=True)
    player = db.Column(db.Text, nullable=True)
    time = db.Column(db.Integer, nullable=True, index=True)
    difficulty = db.Column(db.Text, nullable=True)
    won = db.Column(db.Boolean, nullable=True, index=True)
    date = db.Column(db.DateTime(timezone=True), default=_utcnow, nullable=False, index=True)

    def to_dict(self):
        date = self.date
        # SQLite hands back naive values; they are stored as UTC
        if date is not None and date.tzinfo is None:
            date = date.replace(tzinfo=timezone.utc)
        return {
            'id': self.id,
            'player': self.player,
            'time': self.time,
            'difficulty': self.difficulty,
            'won': self.won,
            'date': date.isoformat() if date else None,
        }
