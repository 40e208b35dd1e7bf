from .presenters import RichPresenter

__all__ = ["RichPresenter"]
