from .inspect import get_function_defaults, pluck_kwargs_from
from .settings_handler import PipelineQuerySettingsHandler
from .settings_dict import PipelineQuerySettingsDict
from .paginated_pipeline import PaginatedPipeline, Page
