from fintrack.config import CURRENCY_SYMBOL


def group_indian(amount: float) -> str:
    # 1234567.5 -> "12,34,567.5": last three digits, then pairs
    formatted = f"{abs(amount):.2f}".rstrip('0').rstrip('.')
    whole, _, frac = formatted.partition('.')
    head, tail = whole[:-3], whole[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    grouped = ','.join(groups + [tail])
    sign = '-' if amount < 0 and formatted != '0' else ''
    return f"{sign}{grouped}.{frac}" if frac else f"{sign}{grouped}"


def format_amount(amount: float) -> str:
    return f"{CURRENCY_SYMBOL}{group_indian(amount)}"


def format_net(net: float) -> str:
    sign = '+' if net >= 0 else '-'
    return f"{sign} {format_amount(abs(net))}"
