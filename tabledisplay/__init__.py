# tabledisplay package
#
# Interactive tables for notebooks, kept in sync with a front-end view over a
# comm. Everything a caller needs is importable from the package root:
#
#   from tabledisplay import (
#       TableDisplay, ColumnType, TimeUnit,
#       decimal_format, heatmap_highlighter, set_comm_factory,
#   )
#
# Lazy loading: imports are deferred via __getattr__ so that importing the
# package does not pull in rich until a table is actually built or rendered.

# Mapping from public name -> (module_path, attribute_name)
_LAZY_IMPORTS = {
    # Table
    "TableDisplay": (".table_display", "TableDisplay"),
    # Types
    "ColumnType": (".types", "ColumnType"),
    "TableSubtype": (".types", "TableSubtype"),
    # Formats, renderers, alignment
    "TimeUnit": (".formats", "TimeUnit"),
    "Alignment": (".formats", "Alignment"),
    "decimal_format": (".formats", "decimal_format"),
    "time_format": (".formats", "time_format"),
    "image_format": (".formats", "image_format"),
    "html_format": (".formats", "html_format"),
    "data_bars_renderer": (".formats", "data_bars_renderer"),
    # Highlighters
    "HighlightStyle": (".highlighters", "HighlightStyle"),
    "heatmap_highlighter": (".highlighters", "heatmap_highlighter"),
    "three_color_heatmap_highlighter": (".highlighters", "three_color_heatmap_highlighter"),
    "unique_entries_highlighter": (".highlighters", "unique_entries_highlighter"),
    # Interactions
    "TableActionDetails": (".actions", "TableActionDetails"),
    "TableActionType": (".actions", "TableActionType"),
    # Transport
    "Comm": (".comm", "Comm"),
    "InMemoryComm": (".comm", "InMemoryComm"),
    "set_comm_factory": (".comm", "set_comm_factory"),
    # Configuration
    "load_config": (".config", "load_config"),
    "TableDisplayConfig": (".config", "TableDisplayConfig"),
    "RowLimitConfig": (".config", "RowLimitConfig"),
    # Errors
    "TableDisplayError": (".errors", "TableDisplayError"),
    "InvalidShape": (".errors", "InvalidShape"),
    "UnknownColumn": (".errors", "UnknownColumn"),
    "DecoratorEvaluationError": (".errors", "DecoratorEvaluationError"),
    "InteractionHandlerError": (".errors", "InteractionHandlerError"),
}


def __getattr__(name):
    if name in _LAZY_IMPORTS:
        module_path, attr_name = _LAZY_IMPORTS[name]
        import importlib
        module = importlib.import_module(module_path, __name__)
        value = getattr(module, attr_name)
        globals()[name] = value
        return value
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = list(_LAZY_IMPORTS)
