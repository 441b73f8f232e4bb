from dataclasses import dataclass, field
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class Stanza:
    date: str
    author: str
    email: str

    @property
    def header(self) -> str:
        return f"{self.date}  {self.author}  <{self.email}>"


# Matches no real commit; seeds the merge decision when nothing is preloaded
EMPTY_STANZA = Stanza(date="", author="", email="")


@dataclass(frozen=True)
class Commit:
    hash: str
    author: str
    email: str
    date: str
    subject: str
    changed_files: Tuple[str, ...] = ()

    @property
    def stanza(self) -> Stanza:
        return Stanza(date=self.date, author=self.author, email=self.email)


@dataclass
class FirstStanza:
    """Top stanza of an existing changelog, kept as raw lines"""
    stanza: Stanza
    header_lines: List[str]
    body_lines: List[str] = field(default_factory=list)

    @property
    def lines(self) -> List[str]:
        return self.header_lines + self.body_lines


@dataclass
class GenerationResult:
    text: str
    used_preload: bool
    commit_count: int = 0
    stanza_count: int = 0
    old_revision: Optional[str] = None
