"""User-user collaborative filtering on bias-corrected rating residuals.

Core idea:
- Fit a global mean plus per-user and per-item biases by in-place gradient passes
- Cosine similarity between users over their residuals, shrunk by co-rating
  count and sharpened by case amplification
- Keep the top-K most similar users per user
- Predict baseline + similarity-weighted average of neighbour residuals
"""

from .recommender import BiasAwareUserCF, SimilarUser

__all__ = ["BiasAwareUserCF", "SimilarUser"]
