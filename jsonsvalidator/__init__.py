import importlib

mod = "jsonsvalidator"
class LazyLoader:
    """
    Lazy loader for the jsonsvalidator API; submodules are imported on first use.
    """
    def __init__(self, mappings):
        self._modules = {}
        self._mappings = mappings

    def _load_module(self, module_name):
        if module_name not in self._modules:
            self._modules[module_name] = importlib.import_module(module_name)
        return self._modules[module_name]

    def __getattr__(self, item):
        if item in self._mappings:
            module_name, attr_name = self._mappings[item]
            module = self._load_module(module_name)
            return getattr(module, attr_name)
        else:
            return self._load_module(f"{mod}.{item}")

# Define the public names and their corresponding module paths
_mappings = {
    "JsonSchemaValidator": (f"{mod}.validator", "JsonSchemaValidator"),
    "validate_json_against_schema": (f"{mod}.validator", "validate_json_against_schema"),
    "SchemaRegistry": (f"{mod}.schemaregistry", "SchemaRegistry"),
    "FormatRegistry": (f"{mod}.formats", "FormatRegistry"),
    "Draft04Validator": (f"{mod}.draft04", "Draft04Validator"),
    "load_missing_refs": (f"{mod}.resolver", "load_missing_refs"),
    "http_loader": (f"{mod}.httploader", "http_loader"),
    "fetch_schema": (f"{mod}.httploader", "fetch_schema"),
    "ValidationError": (f"{mod}.errors", "ValidationError"),
    "LoaderError": (f"{mod}.errors", "LoaderError"),
    "SchemaLoaderError": (f"{mod}.errors", "SchemaLoaderError"),
    "RecursionBudgetError": (f"{mod}.errors", "RecursionBudgetError"),
    "json_equal": (f"{mod}.common", "json_equal"),
    "apparent_type": (f"{mod}.common", "apparent_type"),
}

_lazy_loader = LazyLoader(_mappings)

def __getattr__(name):
    return getattr(_lazy_loader, name)
