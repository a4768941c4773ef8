"""
Streamlit Frontend for HappyShare

The screens a group uses day to day: set up the group, add expenses,
record payments, and see who owes whom.

DESIGN PRINCIPLES:
1. Simple, clear interface
2. Validation messages shown next to the form, in plain language
3. Balances and suggestions always come from one snapshot
4. Suggestions are advice; nothing is recorded until someone confirms

Each browser session gets its own in-memory store.
"""

import asyncio

import streamlit as st

from happyshare.audit import create_correlation_id
from happyshare.config import get_settings
from happyshare.ledger import LedgerError
from happyshare.models.ledger import ExpenseDraft, SettlementDraft, ShareDraft, SplitType
from happyshare.orchestrator import create_app_components
from happyshare.services.storage import StorageError
from happyshare.validation import ValidationFailedError


st.set_page_config(
    page_title="HappyShare",
    page_icon="🤝",
    layout="wide",
    initial_sidebar_state="expanded",
)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def get_components():
    """Get or create this session's application components."""
    if "components" not in st.session_state:
        st.session_state.components = create_app_components()
    return st.session_state.components


def show_error(error: Exception) -> None:
    """Turn a flow error into a message for the user."""
    if isinstance(error, ValidationFailedError):
        for issue in error.result.issues:
            if issue.severity == "error":
                st.error(issue.message)
    else:
        st.error(str(error))


def main():
    """Main application entry point."""
    group_flow, expense_flow, settle_flow, _ = get_components()

    st.sidebar.title("🤝 HappyShare")
    st.sidebar.markdown("---")

    groups = run_async(group_flow.list_groups())
    group = None
    if groups:
        group = st.sidebar.selectbox(
            "Group",
            groups,
            format_func=lambda g: g.name,
        )

    page = st.sidebar.radio(
        "Navigate to:",
        ["👥 Group", "🧾 Expenses", "💸 Settle Up"],
        index=0,
    )

    if page == "👥 Group":
        render_group_page(group_flow, group)
    elif group is None:
        st.info("Create a group first.")
    elif page == "🧾 Expenses":
        render_expenses_page(expense_flow, group)
    elif page == "💸 Settle Up":
        render_settle_page(expense_flow, settle_flow, group)


def render_group_page(group_flow, group):
    """Create groups and manage members."""
    st.title("👥 Group")

    with st.form("new_group"):
        st.subheader("New group")
        name = st.text_input("Group name")
        description = st.text_input("Description (optional)")
        member_names = st.text_area("Members, one per line")
        if st.form_submit_button("Create group", type="primary"):
            try:
                run_async(group_flow.create_group(
                    name=name,
                    description=description or None,
                    member_names=member_names.splitlines(),
                ))
                st.rerun()
            except ValueError as e:
                st.error(f"Could not create group: {e}")

    if group is None:
        return

    st.markdown("---")
    st.subheader(f"Members of {group.name}")

    members = run_async(group_flow.list_members(group.id))
    for member in members:
        col_name, col_remove = st.columns([4, 1])
        col_name.write(member.name)
        if col_remove.button("Remove", key=f"remove_{member.id}"):
            try:
                run_async(group_flow.remove_member(group.id, member.id))
                st.rerun()
            except StorageError as e:
                st.error(str(e))

    new_member = st.text_input("Add member")
    if st.button("Add") and new_member.strip():
        try:
            run_async(group_flow.add_member(group.id, new_member))
            st.rerun()
        except (ValueError, StorageError) as e:
            st.error(f"Could not add member: {e}")

    st.markdown("---")
    if st.button("🗑️ Delete group"):
        run_async(group_flow.delete_group(group.id))
        st.rerun()


def render_expenses_page(expense_flow, group):
    """Add and list expenses."""
    st.title("🧾 Expenses")
    currency = get_settings().app.currency_symbol

    snapshot = run_async(expense_flow.get_snapshot(group.id))
    members = snapshot.members
    names = snapshot.member_names

    if not members:
        st.info("Add members to the group first.")
        return

    with st.form("new_expense"):
        description = st.text_input("What was it for?")
        amount = st.text_input(f"Amount ({currency})")
        payer = st.selectbox("Paid by", members, format_func=lambda m: m.name)
        split_type = st.radio(
            "Split",
            [SplitType.EQUAL, SplitType.CUSTOM],
            format_func=lambda s: s.value.capitalize(),
            horizontal=True,
        )
        participants = st.multiselect(
            "Split equally between (empty = everyone)",
            members,
            format_func=lambda m: m.name,
        )
        custom = {}
        if split_type == SplitType.CUSTOM:
            st.caption("Custom shares")
            for member in members:
                custom[member.id] = st.text_input(member.name, value="0", key=f"share_{member.id}")

        if st.form_submit_button("Add expense", type="primary"):
            draft = ExpenseDraft(
                description=description,
                amount=amount,
                paid_by_id=payer.id,
                split_type=split_type,
                participant_ids=[m.id for m in participants],
                custom_shares=[
                    ShareDraft(member_id=member_id, amount=value)
                    for member_id, value in custom.items()
                    if value.strip() not in ("", "0")
                ] if split_type == SplitType.CUSTOM else [],
            )
            try:
                run_async(expense_flow.record_expense(
                    group.id,
                    draft,
                    correlation_id=create_correlation_id(),
                ))
                st.rerun()
            except (ValidationFailedError, LedgerError, StorageError) as e:
                show_error(e)

    st.markdown("---")
    for expense in sorted(snapshot.expenses, key=lambda e: e.created_at, reverse=True):
        col_text, col_delete = st.columns([5, 1])
        shares = ", ".join(
            f"{names.get(s.member_id, s.member_id)} {currency}{s.amount:.2f}"
            for s in expense.shares
        )
        col_text.markdown(
            f"**{expense.description}** - {currency}{expense.amount:.2f} "
            f"paid by {names.get(expense.paid_by_id, expense.paid_by_id)}  \n{shares}"
        )
        if col_delete.button("Delete", key=f"del_{expense.id}"):
            run_async(expense_flow.delete_expense(group.id, expense.id))
            st.rerun()


def render_settle_page(expense_flow, settle_flow, group):
    """Balances, suggested payments, and recording a payment."""
    st.title("💸 Settle Up")
    currency = get_settings().app.currency_symbol

    try:
        snapshot, balances, suggestions = run_async(settle_flow.summarize(group.id))
    except LedgerError as e:
        st.error(f"Balances could not be calculated: {e}")
        return

    names = snapshot.member_names

    st.subheader("Balances")
    for entry in balances.values():
        if entry.balance > 0:
            st.success(f"{entry.member.name} is owed {currency}{entry.balance:.2f}")
        elif entry.balance < 0:
            st.warning(f"{entry.member.name} owes {currency}{-entry.balance:.2f}")
        else:
            st.write(f"{entry.member.name} is settled up")

    st.subheader("Suggested payments")
    if not suggestions:
        st.info("Everyone is settled up! 🎉")
    for index, suggestion in enumerate(suggestions):
        col_text, col_settle = st.columns([5, 1])
        col_text.write(suggestion.describe(names, currency))
        if col_settle.button("Settle", key=f"settle_{index}"):
            try:
                run_async(expense_flow.record_settlement(
                    group.id,
                    SettlementDraft(
                        from_id=suggestion.from_id,
                        to_id=suggestion.to_id,
                        amount=suggestion.amount,
                    ),
                ))
                st.rerun()
            except (ValidationFailedError, LedgerError, StorageError) as e:
                show_error(e)

    if suggestions and st.button("✅ Mark all suggested payments as paid"):
        run_async(settle_flow.settle_up(group.id, correlation_id=create_correlation_id()))
        st.rerun()

    st.subheader("Recorded payments")
    settlements = run_async(expense_flow.list_settlements(group.id))
    if not settlements:
        st.caption("No payments recorded yet.")
    for settlement in settlements:
        col_text, col_delete = st.columns([5, 1])
        col_text.write(
            f"{names.get(settlement.from_id, settlement.from_id)} paid "
            f"{names.get(settlement.to_id, settlement.to_id)} "
            f"{currency}{settlement.amount:.2f}"
        )
        if col_delete.button("Delete", key=f"del_settlement_{settlement.id}"):
            run_async(expense_flow.delete_settlement(group.id, settlement.id))
            st.rerun()

    st.markdown("---")
    members = snapshot.members
    if len(members) < 2:
        return

    with st.form("record_payment"):
        st.subheader("Record a payment")
        payer = st.selectbox("From", members, format_func=lambda m: m.name)
        receiver = st.selectbox("To", members, format_func=lambda m: m.name, index=1)
        amount = st.text_input(f"Amount ({currency})")
        if st.form_submit_button("Record payment"):
            try:
                run_async(expense_flow.record_settlement(
                    group.id,
                    SettlementDraft(from_id=payer.id, to_id=receiver.id, amount=amount),
                ))
                st.rerun()
            except (ValidationFailedError, LedgerError, StorageError) as e:
                show_error(e)


if __name__ == "__main__":
    main()
