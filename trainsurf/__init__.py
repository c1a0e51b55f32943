"""TrainSurf - confirmed seat stitching for waitlisted train journeys"""

__version__ = "1.0.0"
