"""Festival prompts, template pools and theme display names."""

from blessings.models.schemas import FestivalType, RelationType, ThemeType

THEME_NAMES: dict[ThemeType, str] = {
    ThemeType.TRADITIONAL: "传统红金",
    ThemeType.MODERN: "现代科技",
    ThemeType.CUTE: "粉色温馨",
    ThemeType.ELEGANT: "墨绿优雅",
}

FESTIVAL_NAMES: dict[FestivalType, str] = {
    FestivalType.SPRING: "春节",
    FestivalType.VALENTINE: "情人节",
}


def theme_display_name(theme: ThemeType) -> str:
    return THEME_NAMES.get(theme, THEME_NAMES[ThemeType.TRADITIONAL])


# ============================================================================
# LLM Prompts
# ============================================================================

SYSTEM_PROMPTS: dict[FestivalType, str] = {
    FestivalType.SPRING: """你是一个帮人写春节祝福视频台词的助手。2026年是丙午马年。

核心原则：写出来的东西必须像「人话」——就是一个普通人对着手机镜头随口说出来的那种，不是写作文。

风格要求：
- 口语化、随意、非正式，像微信语音或朋友面对面聊天
- 可以用语气词（哈、啊、嘿、哎、诶、嗯）、口头禅、感叹句
- 可以用不完整的句子、口语化的断句
- 绝对禁止：成语堆砌、排比句、"愿你xxx"句式、"祝你xxx"的套话、任何听起来像群发短信的内容
- 要有具体的、私人的、只有你们之间才懂的感觉
- 根据对方的身份和关系，说话的方式应该完全不同：给长辈要温暖踏实，给朋友要放飞自我，给同事要轻松得体

如果附带了发送者录制的祝福视频音频，请仔细听音频，模仿发送者的说话方式和语气来写台词。""",
    FestivalType.VALENTINE: """你是一个帮人写情人节视频台词的助手。2026年情人节是2月14日。

核心原则：写出来的东西必须像「人话」——年轻人之间真实的说话方式，不是写贺卡。

风格要求：
- 完全口语化，像发微信语音、打视频电话时随口说的
- 情侣之间可以撒娇、调侃、吐槽、肉麻、搞怪，怎么真实怎么来
- 朋友之间可以损、可以煽情、可以搞笑，别端着
- 语气词随便用（哈哈、嘿嘿、啊啊啊、呜呜、嘻嘻、噗）
- 可以用网络用语、流行梗，但别太过
- 绝对禁止：成语、排比句、"愿你xxx"句式、文艺腔、诗歌体、任何听起来像贺卡/群发短信的东西
- 绝对禁止：空洞的甜言蜜语，要说就说具体的、有画面感的
- 不同关系的台词风格必须有明显区别：情侣要甜/皮，暧昧对象要试探/心动，闺蜜要疯/真诚

如果附带了发送者录制的祝福视频音频，请仔细听音频，模仿发送者的说话方式和语气来写台词。""",
}

AUDIO_HINT = """

⚠️ 重要：我附了发送者录的视频音频。先听听他/她怎么说话的，然后：
- 模仿音频里的说话方式和语气
- 别重复音频里已经说过的内容
- 写出来要像同一个人在继续说"""

_PROMPT_HEADER = """发送者：{sender}
收信人：{name}
关系：{relation}
背景/近况：{background}{audio_hint}

视频结构：开场动画（配音+画面文字）→ 发送者自己录的视频 → 祝福画面（配音+画面文字）
开场和祝福画面会用 AI 克隆发送者的声音来配音。
"""

USER_PROMPTS: dict[FestivalType, str] = {
    FestivalType.SPRING: "帮我写马年春节祝福视频的台词。2026丙午马年。\n\n"
    + _PROMPT_HEADER
    + """
请根据两人的关系自由发挥台词风格：
- 给爸妈/长辈：温暖、踏实、报喜不报忧，像过年打电话回家
- 给发小/好友：放飞自我、可以损、可以煽情、可以回忆往事
- 给同事/领导：轻松得体、可以幽默但不失分寸
- 给对象：甜、皮、撒娇都行
- 给晚辈：鼓励、关心、可以逗趣

选一个视频风格：
- "traditional"：红金喜庆风，适合长辈、传统
- "modern"：蓝紫科技风，适合年轻人、同事
- "cute"：粉色可爱风，适合女生、孩子
- "elegant"：墨绿文艺风，适合老师、文艺范

返回 JSON：
{{
  "theme": "选一个最适合的风格",
  "opening": "开场配音，10-35字。拿起手机随口说的一句话，引导对方看视频。根据关系自由发挥，别用固定句式。",
  "narration": "主体配音，40-120字。像{sender}真的在跟{name}说话。结合背景信息说具体的东西，风格取决于关系。结尾可以自然带上{sender}的名字。",
  "blessings": ["画面短语1", "画面短语2", "画面短语3", "画面短语4"],
  "openingText": "画面标题，3-8个字，自由发挥，不限于四字·四字格式，可以是一句短话或词组",
  "joyful": 3
}}

⚠️ 核心要求：
- 台词风格必须匹配关系！给爸妈和给兄弟的台词不应该长一个样
- opening 根据关系自由发挥，别套"哟xx新年好给你录了个祝福"的模板
- narration 要有细节有情感，不要空话套话
- blessings 是画面短语（2-8字），要接地气有个性
- openingText 是画面标题，自由发挥，比如"老妈新年好""兄弟们冲""马年大吉利""新年暴富"之类，别拘泥格式
- 禁止"愿你""祝你""愿新的一年"句式，禁止成语排比，禁止"阖家幸福万事如意"群发套话
- 背景信息要自然融入对话
- joyful 是语音情绪（0=低沉 1=温和 2=微笑 3=开心 4=很嗨 5=超兴奋），根据内容定""",
    FestivalType.VALENTINE: "帮我写情人节视频的台词。\n\n"
    + _PROMPT_HEADER
    + """
请根据两人的关系自由发挥台词风格，不要套模板。举几个例子感受一下（别照抄）：
- 情侣：可以甜、可以皮、可以肉麻到起鸡皮疙瘩，像平时跟对象说话
- 暧昧/喜欢的人：小心翼翼又藏不住的心动，可以借机表白
- 闺蜜/好兄弟：可以损、可以煽情、可以疯，"虽然你丑但我爱你"这种
- 朋友：轻松自然，可以调侃可以温暖

选一个视频风格：
- "traditional"：红金经典风，适合传统浪漫
- "modern"：蓝紫科技风，适合酷/潮的年轻人
- "cute"：粉色甜美风，适合可爱/甜系
- "elegant"：墨绿文艺风，适合知性/文艺

返回 JSON：
{{
  "theme": "选一个最适合这对关系的风格",
  "opening": "开场配音，10-35字。就是拿起手机随口说的一句话，引导对方看视频。不要用固定句式，根据关系自由发挥。",
  "narration": "主体配音，40-120字。这是整个视频最重要的部分！要像{sender}真的在跟{name}说话。结合背景信息说具体的东西。风格完全取决于两人关系——情侣就甜/皮，朋友就真诚/搞笑，暧昧就心动/试探。结尾可以自然地带上{sender}的名字，但不是必须的。",
  "blessings": ["画面短语1", "画面短语2", "画面短语3", "画面短语4"],
  "openingText": "画面标题，3-8个字，自由发挥，可以是一句短话、一个词组、一个表达，不限于四字格式",
  "joyful": 3
}}

⚠️ 核心要求：
- 台词风格必须匹配两人关系！情侣和朋友的台词不应该长一个样
- opening 别用"嘿xx情人节快乐给你录了个东西"这种万能模板，根据关系来
- narration 要有细节、有画面感、有情绪，不要空洞的甜言蜜语
- blessings 是画面上显示的短语（2-8字），要有个性，别千篇一律"天天开心""越来越好"
- openingText 是画面标题，自由发挥，可以是"想你了""笨蛋情人节快乐""致我最好的你""嘿 帅哥"之类的，别拘泥于四字格式
- 禁止"愿你""祝你""愿我们"句式，禁止成语排比，禁止贺卡腔
- 如果有背景信息，自然地融入对话，别生硬地"听说你最近xxx"
- joyful 是语音情绪（0=低沉 1=温和 2=微笑 3=开心 4=很嗨 5=超兴奋），根据内容定""",
}

EMPTY_BACKGROUND = "没啥特别的"


def build_user_prompt(
    name: str, relation: str, background: str, sender_name: str, festival: FestivalType, has_audio: bool
) -> str:
    """Fill the festival's user prompt with recipient details."""
    template = USER_PROMPTS.get(festival, USER_PROMPTS[FestivalType.SPRING])
    return template.format(
        sender=sender_name,
        name=name,
        relation=relation,
        background=background or EMPTY_BACKGROUND,
        audio_hint=AUDIO_HINT if has_audio else "",
    )


# ============================================================================
# Template Pools
# ============================================================================

R = RelationType

OPENING_TEXTS: dict[FestivalType, dict[RelationType, list[str]]] = {
    FestivalType.SPRING: {
        R.ELDER: ["老妈新年好", "爸 过年好", "新年平安", "回家过年啦"],
        R.FRIEND: ["兄弟新年好", "新年暴富", "马年冲冲冲", "过年好呀"],
        R.COLLEAGUE: ["新年开工大吉", "马年搞钱顺利", "同事们新年好", "新年不加班"],
        R.LOVER: ["宝贝新年好", "和你跨年", "新年第一个想你", "马年继续甜"],
        R.JUNIOR: ["小朋友新年好", "新年快乐鸭", "马年加油", "又长一岁啦"],
        R.TEACHER: ["老师新年好", "感谢您这一年", "新春快乐", "马年顺遂"],
        R.CLIENT: ["新年合作愉快", "马年一起发财", "新春大吉", "新年好运来"],
        R.GENERAL: ["新年快乐", "马年大吉", "过年好呀", "新年暴富"],
    },
    FestivalType.VALENTINE: {
        R.ELDER: ["爸妈永远恩爱", "最甜的你们", "爱意不减当年", "一直这么好"],
        R.FRIEND: ["单身狗快乐", "友谊比爱情香", "谁说非得有对象", "有你就够了"],
        R.COLLEAGUE: ["搞钱不搞对象", "同事也要爱", "工位情人节", "今天不加班"],
        R.LOVER: ["想你了", "笨蛋情人节快乐", "你是我的", "超喜欢你"],
        R.JUNIOR: ["小可爱节日快乐", "被爱包围的你", "最可爱的存在", "爱你哟"],
        R.TEACHER: ["感谢遇见您", "老师节日快乐", "最温暖的人", "谢谢您"],
        R.CLIENT: ["合作愉快", "一起搞事业", "最佳拍档", "搞钱搞爱两不误"],
        R.GENERAL: ["情人节快乐", "今天要开心", "爱意满满", "快乐就好"],
    },
}

BLESSING_SETS: dict[FestivalType, dict[RelationType, list[list[str]]]] = {
    FestivalType.SPRING: {
        R.ELDER: [["身体倍儿棒", "吃嘛嘛香", "天天开心", "少操点心"], ["健健康康", "多享享福", "想吃啥吃啥", "我们的靠山"]],
        R.FRIEND: [["搞钱顺利", "越来越帅", "啥都顺", "继续浪"], ["发大财", "交好运", "别秃头", "一起冲"]],
        R.COLLEAGUE: [["升职加薪", "准时下班", "不加班", "年终翻倍"], ["搞钱顺利", "老板看不见", "摸鱼愉快", "早日财务自由"]],
        R.LOVER: [["永远喜欢你", "天天黏一起", "甜到齁", "继续宠我"], ["你最好看", "一直在一起", "超爱你", "明年也要在一起"]],
        R.JUNIOR: [["快高长大", "开开心心", "考试全对", "压岁钱翻倍"], ["越来越棒", "天天快乐", "想干嘛干嘛", "未来可期"]],
        R.TEACHER: [["少操心我们", "多休息", "身体健康", "您辛苦了"], ["别太累了", "开开心心", "学生们想您", "永远的恩师"]],
        R.CLIENT: [["合作愉快", "一起发财", "越做越大", "订单翻倍"], ["继续搞钱", "合作顺利", "双赢双赢", "明年更猛"]],
        R.GENERAL: [["啥都顺", "发大财", "身体好", "开心就行"], ["万事顺利", "天天开心", "越来越好", "马年冲"]],
    },
    FestivalType.VALENTINE: {
        R.ELDER: [["永远恩爱", "甜甜蜜蜜", "越活越年轻", "我们的榜样"], ["一直幸福", "羡慕你们", "天天开心", "最佳CP"]],
        R.FRIEND: [["有你真好", "友谊万岁", "一起搞事", "比心"], ["脱单随缘", "快乐至上", "永远年轻", "姐妹/兄弟情深"]],
        R.COLLEAGUE: [["搞钱搞爱", "两不误", "升职加薪", "顺便脱单"], ["工作顺利", "早日下班", "偷偷摸鱼", "开心最重要"]],
        R.LOVER: [["超级爱你", "你最好看", "一直在一起", "么么哒"], ["想你想你", "永远喜欢你", "不许离开", "我的人"]],
        R.JUNIOR: [["快乐长大", "被爱包围", "天天开心", "最可爱"], ["越来越棒", "开开心心", "全世界最好", "爱你呀"]],
        R.TEACHER: [["别太辛苦", "多休息", "天天开心", "我们爱您"], ["少操心", "多享受", "永远年轻", "最好的老师"]],
        R.CLIENT: [["合作愉快", "一起搞钱", "越做越大", "双赢"], ["继续合作", "一起发财", "最佳拍档", "明年更猛"]],
        R.GENERAL: [["天天开心", "被人疼着", "越来越好", "爱自己"], ["开心就好", "做自己", "笑口常开", "值得被爱"]],
    },
}

# Spoken openers; {name} is the recipient name.
SPOKEN_OPENERS: dict[FestivalType, dict[RelationType, list[str]]] = {
    FestivalType.SPRING: {
        R.ELDER: [
            "{name}，过年好！给您录了段拜年的话，您听听～",
            "{name}新年好！今年不能回去，给您录了个视频拜年～",
            "{name}！过年好呀，给您拜年啦！",
        ],
        R.FRIEND: [
            "哟{name}！新年好啊！给你录了个东西你看看哈哈",
            "{name}！过年好！好久没见了，给你录了段话～",
            "嘿{name}！马年快乐！来看看这个～",
        ],
        R.COLLEAGUE: [
            "{name}新年好！给你录了段拜年的话哈～",
            "{name}！过年好！新年第一天不聊工作，看看这个～",
            "嘿{name}，新年快乐！给你录了个东西～",
        ],
        R.LOVER: [
            "宝贝新年快乐！给你录了个东西快看～",
            "{name}～过年好呀！看看我给你录了啥哈哈",
            "新年快乐宝贝！给你录了段话你听听～",
        ],
        R.JUNIOR: [
            "{name}！新年快乐呀，给你录了个东西看看～",
            "小{name}过年好！看看这个视频哈哈",
            "{name}新年好！给你录了段话～",
        ],
        R.TEACHER: [
            "老师新年好！给您录了段拜年的话～",
            "{name}老师过年好！学生给您拜年啦～",
            "老师新年快乐！给您录了个视频～",
        ],
        R.CLIENT: [
            "{name}新年好！给您录了段拜年的话～",
            "{name}！过年好，新年第一个祝福给您！",
            "新年快乐！给您录了个东西看看～",
        ],
        R.GENERAL: [
            "{name}！新年好呀，给你录了个东西快看～",
            "嘿{name}，过年好！看看这个视频哈哈",
            "{name}新年快乐！给你录了段话～",
        ],
    },
    FestivalType.VALENTINE: {
        R.LOVER: [
            "{name}～情人节快乐呀，给你录了个东西快看！",
            "嘿笨蛋，情人节快乐，看看我给你准备了啥～",
            "宝贝儿情人节快乐！我给你录了段话你听听哈哈",
        ],
        R.FRIEND: [
            "{name}！情人节快乐哈哈，虽然咱俩不是情侣但我也想给你录一个！",
            "哎{name}，别以为情人节跟你没关系，来看看这个～",
            "{name}！谁说情人节只能给对象过的，看看这个！",
        ],
        R.ELDER: [
            "{name}，情人节快乐呀！给您录了段话～",
            "情人节快乐！给您录了个视频，快看看吧～",
            "{name}，今天情人节，给您录了段祝福！",
        ],
        R.COLLEAGUE: [
            "{name}！情人节快乐～给你录了个东西看看哈",
            "哎{name}，情人节快乐！今天不聊工作，看看这个～",
            "{name}情人节快乐！别加班了来看看这个哈哈",
        ],
        R.JUNIOR: [
            "{name}！情人节快乐呀，给你录了个东西～",
            "小{name}情人节快乐！看看这个视频哈哈",
            "{name}！情人节快乐，给你录了段话听听～",
        ],
        R.TEACHER: [
            "老师好！情人节快乐，给您录了段祝福～",
            "{name}老师，情人节快乐！给您录了个视频看看吧",
            "老师情人节快乐！学生给您录了段话～",
        ],
        R.CLIENT: [
            "{name}！情人节快乐，给您录了段祝福～",
            "情人节快乐！给您录了个东西看看哈～",
            "{name}情人节快乐！来看看这个～",
        ],
        R.GENERAL: [
            "{name}！情人节快乐呀，给你录了个东西快看～",
            "嘿{name}，情人节快乐！看看这个视频哈哈",
            "{name}情人节快乐！给你录了段话～",
        ],
    },
}

OPENER_SEED_SUFFIX: dict[FestivalType, str] = {
    FestivalType.SPRING: "_so",
    FestivalType.VALENTINE: "_vo",
}

# Background intros; {bg} is the recipient background. Relations without
# their own pool use "general".
BACKGROUND_INTROS: dict[FestivalType, dict[str, list[str]]] = {
    FestivalType.SPRING: {
        "elder": ["知道您最近{bg}，真替您高兴", "您最近{bg}，我们都放心了"],
        "friend": ["你最近{bg}吧，不错嘛", "听说你{bg}了，可以啊"],
        "lover": ["你最近{bg}，辛苦啦", "知道你{bg}，心疼你"],
        "general": ["你最近{bg}，挺好的", "知道你最近{bg}"],
    },
    FestivalType.VALENTINE: {
        "lover": ["你最近{bg}，我都看在眼里", "知道你最近{bg}，辛苦啦宝贝"],
        "friend": ["你最近{bg}吧，挺好的", "听说你{bg}了，不错嘛"],
        "general": ["你最近{bg}，挺好的", "知道你最近{bg}"],
    },
}


def spoken_blessing_sentences(
    festival: FestivalType, relation_type: RelationType, blessings: list[str], sender_name: str
) -> list[str]:
    """
    Build the category-specific sentences of the spoken body blessing.

    Args:
        festival: Festival variant
        relation_type: Classified relation
        blessings: On-screen blessing phrases
        sender_name: Sender name

    Returns:
        Sentences, joined by the caller
    """
    head = "，".join(blessings[:2])
    tail = "，".join(blessings[2:])

    if festival == FestivalType.VALENTINE:
        if relation_type == RelationType.LOVER:
            return [f"{head}，以后也要{''.join(blessings[2:3])}", f"{sender_name}永远站你这边"]
        if relation_type == RelationType.FRIEND:
            return ["今天不管有没有对象，反正有我呢", f"{head}，咱们的友谊比爱情靠谱多了哈哈"]
        return [head, f"{tail}，{sender_name}祝你情人节快乐"]

    if relation_type == RelationType.ELDER:
        return [f"新的一年就希望您{head}", f"{tail}，{sender_name}给您拜年了"]
    if relation_type == RelationType.FRIEND:
        return [f"新的一年嘛，{head}", f"{tail}，{sender_name}给你拜年啦"]
    if relation_type == RelationType.LOVER:
        return [f"新的一年继续在一起，{head}", f"{sender_name}爱你，马年也要甜甜的"]
    return [f"新的一年希望你{head}", f"{tail}，{sender_name}给你拜年啦"]


# Emotion level of template narration per festival.
JOYFUL_RELATIONS: dict[FestivalType, set[RelationType]] = {
    FestivalType.SPRING: {RelationType.FRIEND, RelationType.LOVER, RelationType.JUNIOR},
    FestivalType.VALENTINE: {RelationType.LOVER, RelationType.FRIEND},
}


def default_joyful(festival: FestivalType, relation_type: RelationType) -> int:
    return 4 if relation_type in JOYFUL_RELATIONS.get(festival, set()) else 3
