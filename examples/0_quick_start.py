import asyncio

from approvalbridge import ApprovalClient, Decision

# Start the bridge first, with Telegram credentials in the environment:
#
#   APPROVALBRIDGE_TELEGRAM__BOT_TOKEN=... APPROVALBRIDGE_TELEGRAM__CHAT_ID=... \
#       python -m approvalbridge serve --port 3000


async def main() -> None:
    client = ApprovalClient("http://localhost:3000")

    # send a message with two buttons to the operator chat, then block until one is pressed
    outcome = await client.request_approval(
        "💳 Payment of 120.000 COP for NIC 1234567. Approve?",
        actions=["approve", "reject"],
        timeout_s=120,
    )

    if isinstance(outcome, Decision):
        print(f"{outcome.actor or 'operator'} chose: {outcome.action}")
    else:
        print(f"No answer after {outcome.waited_s}s")


if __name__ == "__main__":
    asyncio.run(main())
