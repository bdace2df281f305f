from .candidate import Candidate
