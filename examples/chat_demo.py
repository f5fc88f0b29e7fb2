"""Minimal demonstration of a chat session: ping, one turn, cost estimate."""

import asyncio
import sys

from dotenv import load_dotenv

# LLM_CORE_CONFIG_FILE 等变量需要在导入 llm_core 之前进入环境
load_dotenv()

from llm_core.api.service import get_default_session  # noqa: E402


async def main() -> None:
    session = get_default_session()
    print(await session.ping())

    if len(sys.argv) > 1:
        out = await session.upload_pdf(sys.argv[1])
        print(out["message"])

    question = "用一句话介绍你自己"
    out = await session.send(question)
    print("User:", question)
    print("Assistant:", out.get("output_text", out["message"]))
    print("Cost:", session.estimate_last_cost())


if __name__ == "__main__":
    asyncio.run(main())
