from dishka import Provider as DishkaProvider


class Provider(DishkaProvider):
    """Base for all logpipe DI providers."""
