# messages.py
import re

NO_PHONE_ERROR = "No phone number available for vendor"

# rule -> (marker substring, notification text)
RULE_MESSAGES = {
    "no_plan": (
        "haven't submitted any growth plan",
        "You haven't submitted any growth plan yet. Please create a growth plan to improve your business performance.",
    ),
    "no_shop": (
        "haven't registered any shops",
        "You haven't registered any shops yet. Please register your shop(s) to start attracting customers.",
    ),
    "no_activity": (
        "None of your registered shops have received",
        "None of your registered shops have received any customer orders yet. Consider improving your shop visibility and offerings.",
    ),
}

REVENUE_MARKER = "reached the minimum revenue threshold"


def format_inr(amount: float) -> str:
    """Render an amount with Indian digit grouping (12,34,567.5), at most 3 decimals."""
    negative = amount < 0
    rounded = round(abs(amount), 3)
    whole = int(rounded)
    fraction = f"{rounded - whole:.3f}"[2:].rstrip("0")

    digits = str(whole)
    if len(digits) > 3:
        head, tail = digits[:-3], digits[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        digits = ",".join(groups + [tail])

    text = f"{digits}.{fraction}" if fraction else digits
    return f"-{text}" if negative else text


def revenue_notification(threshold: float, revenue: float) -> str:
    return (
        f"🎉 Congratulations! Your business has reached the minimum revenue threshold of "
        f"₹{format_inr(threshold)} this month. Current revenue: ₹{format_inr(revenue)}. Keep up the great work!"
    )


def revenue_whatsapp(threshold: float, revenue: float) -> str:
    return (
        f"🎉 Revenue Milestone Achieved!\n\nYour business has reached the minimum revenue threshold of "
        f"₹{format_inr(threshold)} this month.\n\nCurrent Revenue: ₹{format_inr(revenue)}\n\nKeep up the great work! 🚀"
    )


def admin_whatsapp(message: str, type: str) -> str:
    return f"🔔 Notification from Admin\n\nType: {type}\n\n{message}\n\nPlease check your vendor portal for more details."


def sanitize_phone(phone: str) -> str:
    return re.sub(r"\D", "", phone or "")
