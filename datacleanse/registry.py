RULE_HANDLERS = {}

def register(rule_type):
    """Register ``fn`` as the handler for ``rule_type``; each type has exactly one handler."""
    def decorator(fn):
        existing = RULE_HANDLERS.get(rule_type)
        if existing is not None and existing is not fn:
            raise ValueError(f"rule type '{rule_type}' already handled by {existing.__name__}")
        RULE_HANDLERS[rule_type] = fn
        return fn
    return decorator

def get_handler(rule_type):
    return RULE_HANDLERS.get(rule_type)

def list_rule_types():
    return list(RULE_HANDLERS.keys())
